"""
In-page JavaScript installed into every document of a recorded or replayed page.

The script is registered with add_init_script(), so the browser runs it
again in each new document after a navigation or reload. It talks to
Python only through exposed bindings:

    __webMacroReady()          document finished loading
    __webMacroEvent(json)      raw interaction event (only while recording)
    __webMacroMutated()        throttled DOM change notification
"""

import json

READY_BINDING = "__webMacroReady"
EVENT_BINDING = "__webMacroEvent"
MUTATION_BINDING = "__webMacroMutated"

# Attributes whose changes can flip an element's visibility or enabled state
WATCHED_ATTRIBUTES = ["style", "class", "hidden", "disabled", "aria-hidden"]

PAGE_SCRIPT = r"""
(() => {
  if (window.__webMacroInstalled) return;
  window.__webMacroInstalled = true;
  window.__webMacroRecording = window.__webMacroRecording || false;

  const CLICKABLE = 'button, a, input[type=submit], input[type=button], input[type=checkbox], ' +
    'input[type=radio], [role=button], [onclick], label';
  const FIELDS = ['INPUT', 'TEXTAREA', 'SELECT'];
  const MAX_PATH = 12;

  function idIsUnique(id) {
    try {
      return document.querySelectorAll('#' + CSS.escape(id)).length === 1;
    } catch (e) {
      return false;
    }
  }

  function elementText(el) {
    if (el.tagName === 'INPUT' && ['submit', 'button', 'reset'].includes((el.type || '').toLowerCase())) {
      return el.value || '';
    }
    if (FIELDS.includes(el.tagName) && el.labels && el.labels.length) {
      return el.labels[0].textContent || '';
    }
    return el.textContent || '';
  }

  function snapshot(el) {
    const attributes = {};
    for (const attr of el.attributes) attributes[attr.name] = attr.value;

    const path = [];
    let node = el;
    while (node && node.tagName && node.tagName !== 'HTML' && path.length < MAX_PATH) {
      const parent = node.parentElement;
      const siblings = parent ? Array.from(parent.children).filter(c => c.tagName === node.tagName) : [node];
      path.push({
        tag: node.tagName.toLowerCase(),
        id: node.id || null,
        id_unique: node.id ? idIsUnique(node.id) : true,
        index: siblings.indexOf(node) + 1,
        same_tag_count: siblings.length,
      });
      node = parent;
    }

    return {
      tag: el.tagName.toLowerCase(),
      attributes,
      text: elementText(el).trim().substring(0, 200),
      value: 'value' in el ? String(el.value) : null,
      checked: 'checked' in el ? !!el.checked : null,
      path,
    };
  }

  function post(kind, el, extra) {
    if (!window.__webMacroRecording || !window.__webMacroEvent) return;
    const event = Object.assign({
      kind,
      element: el ? snapshot(el) : null,
      url: location.href,
      timestamp: Date.now(),
    }, extra || {});
    try {
      window.__webMacroEvent(JSON.stringify(event));
    } catch (e) { /* binding gone during unload */ }
  }

  document.addEventListener('click', (e) => {
    if (!(e.target instanceof Element) || e.target.closest('#__web_macro_toast__')) return;
    const target = e.target.closest(CLICKABLE);
    if (!target) return;
    // The browser re-dispatches a label click on its control
    if (target.tagName === 'LABEL' && target.control) return;
    post('click', target);
  }, true);

  document.addEventListener('input', (e) => {
    const el = e.target;
    if (el.tagName === 'INPUT' || el.tagName === 'TEXTAREA') post('input', el, { value: el.value });
  }, true);

  document.addEventListener('focusout', (e) => {
    const el = e.target;
    if (el && (el.tagName === 'INPUT' || el.tagName === 'TEXTAREA')) post('blur', el);
  }, true);

  document.addEventListener('change', (e) => {
    const el = e.target;
    if (el && FIELDS.includes(el.tagName)) post('change', el, { value: el.value });
  }, true);

  window.addEventListener('beforeunload', () => post('unload', null));

  let mutationPending = false;
  function notifyMutation() {
    if (mutationPending || !window.__webMacroMutated) return;
    mutationPending = true;
    setTimeout(() => {
      mutationPending = false;
      try { window.__webMacroMutated(); } catch (e) { /* context closing */ }
    }, 16);
  }

  function observe() {
    const root = document.documentElement;
    if (!root) return;
    new MutationObserver(notifyMutation).observe(root, {
      childList: true,
      subtree: true,
      attributes: true,
      attributeFilter: __WATCHED_ATTRIBUTES__,
    });
  }

  function ready() {
    try { window.__webMacroReady(); } catch (e) { /* binding not exposed */ }
  }

  if (document.documentElement) observe();
  else document.addEventListener('DOMContentLoaded', observe);

  if (document.readyState === 'complete') ready();
  else window.addEventListener('load', ready);
})();
""".replace("__WATCHED_ATTRIBUTES__", json.dumps(WATCHED_ATTRIBUTES))

SET_RECORDING_SCRIPT = "flag => { window.__webMacroRecording = flag; }"

TOAST_SCRIPT = r"""
text => {
  const id = '__web_macro_toast__';
  let el = document.getElementById(id);
  if (!el) {
    el = document.createElement('div');
    el.id = id;
    el.style.cssText = 'position: fixed; top: 16px; right: 16px; z-index: 2147483647;' +
      'background: #1a1a2e; color: #fff; border-radius: 8px; padding: 10px 16px;' +
      'font: 14px/1.4 system-ui, sans-serif; box-shadow: 0 4px 20px rgba(0,0,0,.4);' +
      'transition: opacity 0.3s; pointer-events: none;';
    (document.body || document.documentElement).appendChild(el);
  }
  el.textContent = text;
  el.style.opacity = '1';
  clearTimeout(el._timeout);
  el._timeout = setTimeout(() => { el.style.opacity = '0'; }, 2500);
}
"""

IS_VISIBLE_SCRIPT = r"""
el => {
  const style = getComputedStyle(el);
  const rect = el.getBoundingClientRect();
  return style.display !== 'none' &&
    style.visibility !== 'hidden' &&
    style.opacity !== '0' &&
    (rect.width > 0 || rect.height > 0);
}
"""

WILL_NAVIGATE_SCRIPT = r"""
el => {
  const link = el.closest('a[href]');
  if (link) {
    const href = link.getAttribute('href').trim().toLowerCase();
    if (href.startsWith('javascript:') || href.startsWith('#')) return false;
    return (link.getAttribute('target') || '_self') === '_self';
  }
  const type = (el.getAttribute('type') || '').toLowerCase();
  if (el.tagName === 'BUTTON') return (type === '' || type === 'submit') && !!el.form;
  return el.tagName === 'INPUT' && (type === 'submit' || type === 'image');
}
"""

SET_VALUE_SCRIPT = r"""
(el, [value, events]) => {
  el.focus();
  const proto = el instanceof HTMLTextAreaElement ? HTMLTextAreaElement.prototype
    : el instanceof HTMLSelectElement ? HTMLSelectElement.prototype
    : HTMLInputElement.prototype;
  const setter = Object.getOwnPropertyDescriptor(proto, 'value').set;
  setter.call(el, value);
  for (const name of events) el.dispatchEvent(new Event(name, { bubbles: true }));
}
"""
