"""Page visibility for the Streamlit widget.

Streamlit runs on the server and never sees the browser's
``visibilitychange`` events, so the widget asks the page for
``document.visibilityState`` through a small JS-eval component.
"""

from __future__ import annotations

import time

from streamlit_js_eval import streamlit_js_eval


VISIBILITY_CHECK_SECONDS = 5


def visibility_key(now: float | None = None) -> str:
    # The component evaluates once per mount; a new key per window re-reads the state
    now = time.monotonic() if now is None else now
    return f"page-visibility-{int(now // VISIBILITY_CHECK_SECONDS)}"


def page_visible(default: bool = True) -> bool:
    """True unless the browser reports the tab as hidden.

    Returns ``default`` until the component has answered, which takes one
    round trip after each new key.
    """
    state = streamlit_js_eval(js_expressions="document.visibilityState", key=visibility_key())
    if state is None:
        return default
    return state != "hidden"
