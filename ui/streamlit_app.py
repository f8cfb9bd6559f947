# Role: Streamlit replay viewer.
# - Backend is authoritative (replay states come from /replay or /chat-examples).
# - Playback and the map overlay run locally through ReplayPlayer + OverlaySync.

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

import requests
import streamlit as st

import tripreplay.config
tripreplay.config.load_env()

from tripreplay.core.overlay_sync import OverlaySync
from tripreplay.core.replay_player import ReplayPlayer
from tripreplay.models.replay import ConversationReplay, ConversationState

BACKEND_URL = tripreplay.config.BACKEND_URL


# ----------------------------
# Session helpers
# ----------------------------
def ensure_session() -> None:
    if "player" not in st.session_state:
        st.session_state["player"] = None
    if "autoplay" not in st.session_state:
        st.session_state["autoplay"] = False
    if "error" not in st.session_state:
        st.session_state["error"] = None


def start_player(replay: ConversationReplay) -> None:
    st.session_state["player"] = ReplayPlayer(replay, sync=OverlaySync())
    st.session_state["autoplay"] = replay.replay_config.autoAdvance and bool(replay.states)
    st.session_state["error"] = None


# ----------------------------
# Backend calls
# ----------------------------
def fetch_replay(conversation_id: str) -> ConversationReplay:
    resp = requests.get(f"{BACKEND_URL}/replay", params={"conversation_id": conversation_id}, timeout=30)
    resp.raise_for_status()
    return ConversationReplay.model_validate(resp.json())


def fetch_examples() -> List[Dict[str, Any]]:
    try:
        r = requests.get(f"{BACKEND_URL}/chat-examples", params={"is_active": True}, timeout=10)
        if r.status_code != 200:
            return []
        return r.json().get("data") or []
    except requests.RequestException:
        return []


def fetch_example_replay(example_id: str) -> ConversationReplay:
    resp = requests.get(f"{BACKEND_URL}/chat-examples/{example_id}/with-states", timeout=30)
    resp.raise_for_status()
    body = resp.json()
    # Key line: stored states are replayed as frozen; nothing is regenerated client-side.
    return ConversationReplay.model_validate(
        {
            "conversation_id": body["conversation_id"],
            "title": body.get("title"),
            "description": body.get("description"),
            "created_at": body["created_at"],
            "replay_config": body.get("replay_config") or {},
            "states": body.get("states") or [],
        }
    )


# ----------------------------
# UI polish
# ----------------------------
def inject_css() -> None:
    st.markdown(
        """
<style>
.block-container { max-width: 1200px; padding-top: 2rem; padding-bottom: 2rem; }

section[data-testid="stSidebar"] .block-container { padding-top: 1.25rem; }

.stButton>button {
  border-radius: 12px !important;
  padding: 0.60rem 0.90rem !important;
  font-weight: 650 !important;
}

/* Zone legend card */
.tr-card {
  border: 1px solid rgba(49, 51, 63, 0.14);
  border-radius: 16px;
  padding: 14px 14px;
  background: rgba(255, 255, 255, 0.02);
}

.tr-title {
  font-size: 0.95rem;
  font-weight: 750;
  opacity: 0.9;
  margin-bottom: 10px;
}

.tr-row {
  display: flex;
  align-items: center;
  gap: 10px;
  padding: 8px 10px;
  border: 1px solid rgba(49, 51, 63, 0.10);
  border-radius: 14px;
  margin-bottom: 8px;
}

.tr-swatch {
  width: 14px;
  height: 14px;
  border-radius: 4px;
  flex: 0 0 14px;
}

.tr-v { font-size: 0.95rem; font-weight: 650; }

.tr-hidden { opacity: 0.45; }

.tr-tool {
  display: inline-block;
  font-size: 0.75rem;
  padding: 2px 8px;
  border-radius: 10px;
  background: rgba(59, 130, 246, 0.15);
  margin-bottom: 4px;
}
</style>
""",
        unsafe_allow_html=True,
    )


# ----------------------------
# Formatting helpers
# ----------------------------
def _zone_row(label: str, color: str, visible: bool) -> str:
    css = "tr-row" if visible else "tr-row tr-hidden"
    return f"""
<div class="{css}">
  <div class="tr-swatch" style="background:{color}"></div>
  <div class="tr-v">{label}</div>
</div>
"""


def _fmt_address(value: Optional[str]) -> str:
    if not value or not value.strip():
        return "Not set"
    return value.strip()


# ----------------------------
# Sidebar: source picker + playback controls + zone legend
# ----------------------------
def render_source_picker() -> None:
    st.sidebar.title("Replay")

    conversation_id = st.sidebar.text_input("Conversation id")
    if st.sidebar.button("Load conversation", use_container_width=True, disabled=not conversation_id):
        try:
            start_player(fetch_replay(conversation_id.strip()))
        except requests.RequestException:
            st.session_state["error"] = f"I couldn't reach the backend at {BACKEND_URL}."
        st.rerun()

    examples = fetch_examples()
    if examples:
        titles = {ex["id"]: ex.get("title") or ex["id"] for ex in examples}
        picked = st.sidebar.selectbox("Or pick an example", list(titles), format_func=lambda i: titles[i])
        if st.sidebar.button("Load example", use_container_width=True):
            try:
                start_player(fetch_example_replay(picked))
            except requests.RequestException:
                st.session_state["error"] = f"I couldn't reach the backend at {BACKEND_URL}."
            st.rerun()


def render_controls(player: ReplayPlayer) -> None:
    st.sidebar.divider()
    st.sidebar.caption(f"Message {player.position} of {len(player.states)}")

    col1, col2, col3 = st.sidebar.columns(3)
    with col1:
        if st.button("Next", use_container_width=True, disabled=player.finished):
            st.session_state["autoplay"] = False
            player.step()
            st.rerun()
    with col2:
        if st.session_state["autoplay"]:
            if st.button("Pause", use_container_width=True):
                st.session_state["autoplay"] = False
                player.pause()
                st.rerun()
        elif st.button("Play", use_container_width=True, disabled=player.finished):
            st.session_state["autoplay"] = True
            st.rerun()
    with col3:
        if st.button("Reset", use_container_width=True):
            st.session_state["autoplay"] = False
            player.reset()
            st.rerun()


def render_zone_legend(sync: OverlaySync) -> None:
    zones = sync.zones.provider_zones()
    if not zones:
        return

    rows = "".join(_zone_row(z.label, z.config.get("color", "#3b82f6"), z.visible) for z in zones)
    st.sidebar.markdown(
        f'<div class="tr-card"><div class="tr-title">Service zones</div>{rows}</div>',
        unsafe_allow_html=True,
    )

    for zone in zones:
        if st.sidebar.checkbox(zone.label, value=zone.visible, key=f"zone-{zone.id}") != zone.visible:
            sync.zones.toggle_visibility(zone.id)
            st.rerun()


# ----------------------------
# Chat + map
# ----------------------------
def render_chat(player: ReplayPlayer) -> None:
    states: List[ConversationState] = player.states[: player.position]
    for state in states:
        if state.message.role == "system":
            continue
        with st.chat_message(state.message.role):
            hints = state.ui_hints
            if hints.highlight_tool and player.replay.replay_config.highlightToolCalls:
                st.markdown(f'<span class="tr-tool">{hints.highlight_tool.value}</span>', unsafe_allow_html=True)
            st.write(state.message.content)


def render_map(player: ReplayPlayer) -> None:
    sync: OverlaySync = player.sync
    pings = sync.pings.visible_pings()
    snapshot = sync.state

    st.subheader("Map")
    st.caption(
        f"From: {_fmt_address(snapshot.source_address)}  |  To: {_fmt_address(snapshot.destination_address)}"
    )

    if not pings:
        st.info("Pings appear here as the conversation finds places.")
        return

    focus = sync.pings.focus.current
    st.map(
        data={
            "lat": [p.coordinates[0] for p in pings],
            "lon": [p.coordinates[1] for p in pings],
            "color": [p.config.get("color", "#3b82f6") for p in pings],
        },
        latitude="lat",
        longitude="lon",
        color="color",
        zoom=focus.zoom,
    )

    for ping in pings:
        st.caption(f"{ping.label}: {ping.coordinates[0]:.5f}, {ping.coordinates[1]:.5f}")


# ----------------------------
# Main
# ----------------------------
def main() -> None:
    st.set_page_config(page_title="Trip Replay", page_icon="🗺️", layout="wide")
    inject_css()

    st.title("🗺️ Trip Replay")
    st.caption("Step through a recorded conversation and watch providers, addresses and zones land on the map.")

    ensure_session()
    render_source_picker()

    if st.session_state["error"]:
        st.error(st.session_state["error"])

    player: Optional[ReplayPlayer] = st.session_state["player"]
    if player is None:
        st.info("Load a conversation or an example to start the replay.")
        return

    if not player.states:
        st.warning("This conversation has no messages to replay.")
        return

    render_controls(player)
    render_zone_legend(player.sync)

    chat_col, map_col = st.columns([3, 2])
    with chat_col:
        render_chat(player)
    with map_col:
        render_map(player)

    # Auto-advance: one step per rerun so the page redraws between messages.
    if st.session_state["autoplay"]:
        if player.finished:
            st.session_state["autoplay"] = False
            return
        if player.position > 0:
            time.sleep(player.replay.replay_config.delayMs / 1000)
        player.step()
        st.rerun()


if __name__ == "__main__":
    main()
