"""Infrastructure utilities for Streamlit UI operations.

Wraps st.rerun and the map component version so tests can patch them in one
place instead of every caller.
"""

import logging

import streamlit as st

logger = logging.getLogger(__name__)


def trigger_rerun() -> None:
    """Mockable wrapper around st.rerun() (which raises StopExecution)."""
    st.rerun()


def bump_map_version() -> None:
    """Increment map_version so the next render mounts a fresh map component.

    A fresh component has no memory of its last click, which stops a stale
    click from being replayed after the dataset was replaced.
    """
    old_version = st.session_state.get("map_version", 0)
    st.session_state.map_version = old_version + 1
    logger.info(f"[MAP] Bumped map_version: {old_version} -> {old_version + 1}")
