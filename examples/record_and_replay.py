"""
Example: Record and Replay

Opens a visible browser, records until you press Enter, saves the macro,
then replays it in a fresh tab at double speed.
"""

import asyncio

from web_macro import MacroRuntime
from web_macro.config import load_config
from web_macro.utils import setup_logging


async def main():
    """Record a macro on example.com and play it back."""

    # Load configuration (from env vars, config files, or defaults)
    settings = load_config(browser={"headless": False})
    setup_logging(settings.logging.level)

    async with MacroRuntime(settings) as runtime:
        await runtime.open("https://example.com")
        await runtime.start_recording()

        await asyncio.to_thread(input, "Recording... press Enter to stop ")
        result = await runtime.stop_recording()
        print(f"Recorded {result['count']} actions")
        if not result["count"]:
            return

        await runtime.save("example")

        # Replay in a new tab; the newest tab is the active one
        await runtime.open("https://example.com")
        report = await runtime.replay("example", speed=2.0)
        print(f"Played {report.played}/{report.total}, skipped {report.skipped}")


if __name__ == "__main__":
    asyncio.run(main())
