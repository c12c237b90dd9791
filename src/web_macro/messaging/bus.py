"""
Message Bus - Asynchronous message passing between the controller and pages.

Delivery to page contexts is best-effort and FIFO per context: each context
has its own outgoing queue drained by one pump task. A message for a
context that is gone is logged and dropped; nothing is retried.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional

from web_macro.exceptions import ContextGoneError, WebMacroError
from web_macro.messaging.messages import Message

logger = logging.getLogger(__name__)

Handler = Callable[[Message], Awaitable[dict]]


class _ContextEndpoint:
    """Outgoing queue and pump task for one page context."""
    
    def __init__(self, context_id: str, handler: Handler):
        self.context_id = context_id
        self.handler = handler
        self.queue: "asyncio.Queue[Message]" = asyncio.Queue()
        self.task = asyncio.create_task(self._pump(), name=f"bus-{context_id}")
    
    async def _pump(self) -> None:
        while True:
            message = await self.queue.get()
            try:
                await self.handler(message)
            except ContextGoneError as e:
                logger.debug(f"Dropped {message.type.value} for {self.context_id}: {e}")
            except WebMacroError as e:
                logger.warning(f"Page {self.context_id} failed to handle {message.type.value}: {e}")
            except Exception:
                logger.exception(f"Unexpected error delivering {message.type.value} to {self.context_id}")
            finally:
                self.queue.task_done()


class MessageBus:
    """
    In-process message bus.
    
    Example:
        >>> bus = MessageBus()
        >>> bus.register_controller(controller.handle)
        >>> bus.register_context("tab-1", agent.handle_message)
        >>> response = await bus.send_to_controller(Message(MessageType.GET_STATE))
    """
    
    def __init__(self):
        self._controller: Optional[Handler] = None
        self._contexts: Dict[str, _ContextEndpoint] = {}
        self._active_context: Optional[str] = None
    
    @property
    def active_context(self) -> Optional[str]:
        """The context user-facing commands apply to (the focused tab)."""
        return self._active_context
    
    def set_active_context(self, context_id: Optional[str]) -> None:
        self._active_context = context_id
    
    def has_context(self, context_id: str) -> bool:
        return context_id in self._contexts
    
    def register_controller(self, handler: Handler) -> None:
        self._controller = handler
    
    def register_context(self, context_id: str, handler: Handler) -> None:
        """
        Register a page context; the newest registration becomes active.
        
        Must be called from within a running event loop.
        """
        if context_id in self._contexts:
            self._contexts[context_id].handler = handler
        else:
            self._contexts[context_id] = _ContextEndpoint(context_id, handler)
        self._active_context = context_id
    
    def unregister_context(self, context_id: str) -> None:
        endpoint = self._contexts.pop(context_id, None)
        if endpoint:
            endpoint.task.cancel()
        if self._active_context == context_id:
            self._active_context = next(iter(reversed(list(self._contexts))), None)
    
    async def send_to_controller(self, message: Message) -> dict:
        """
        Deliver a message to the controller and wait for its response.
        
        Raises:
            WebMacroError: If no controller is registered
        """
        if self._controller is None:
            raise WebMacroError("No controller registered on the bus")
        return await self._controller(message)
    
    def post_to_context(self, context_id: Optional[str], message: Message) -> bool:
        """
        Queue a message for a page context.
        
        Returns:
            False when the context is unknown (message dropped)
        """
        endpoint = self._contexts.get(context_id) if context_id else None
        if endpoint is None:
            logger.debug(f"No page context {context_id!r} for {message.type.value}; dropped")
            return False
        endpoint.queue.put_nowait(message)
        return True
    
    def post_to_active(self, message: Message) -> bool:
        return self.post_to_context(self._active_context, message)
    
    async def drain(self) -> None:
        """Wait until every queued page message has been handled."""
        for endpoint in list(self._contexts.values()):
            await endpoint.queue.join()
    
    async def close(self) -> None:
        """Cancel all pump tasks."""
        endpoints = list(self._contexts.values())
        self._contexts.clear()
        self._active_context = None
        for endpoint in endpoints:
            endpoint.task.cancel()
        await asyncio.gather(*(e.task for e in endpoints), return_exceptions=True)
