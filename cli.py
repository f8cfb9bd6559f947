# Role: Local developer CLI to step through a conversation export without the web UI.
# Useful for checking replay states and what lands on the map at each message.

from __future__ import annotations

import asyncio
import json
import sys

import tripreplay.config
tripreplay.config.load_env()

from tripreplay.core.conversation_store import ConversationStore
from tripreplay.core.overlay_sync import OverlaySync
from tripreplay.core.replay_player import ReplayPlayer
from tripreplay.core.replay_service import ReplayService
from tripreplay.models.replay import ConversationState
from tripreplay.tools.geocode_client import GeocodeClient
from tripreplay.tools.provider_client import ProviderClient

HELP = "Commands: /next, /play, /state, /zones, /pings, /zone <provider_id>, /reset, /exit"


def _print_step(state: ConversationState) -> None:
    hints = state.ui_hints
    if state.message.role == "system":
        print(f"\n[{state.sequence_number}] (system message applied)")
    else:
        print(f"\n[{state.sequence_number}] {state.message.role.title()}: {state.message.content}")
    tags = []
    if hints.highlight_tool:
        tags.append(f"tool={hints.highlight_tool.value}")
    if hints.map_action:
        tags.append(f"map={hints.map_action.value}")
    if hints.show_providers:
        tags.append(f"providers={len(state.state_snapshot.providers)}")
    if hints.show_addresses:
        tags.append(f"addresses={len(state.state_snapshot.addresses)}")
    if tags:
        print("    " + " ".join(tags))


def main() -> None:
    # 1) Load a conversation export into an in-memory store
    # 2) Generate its replay
    # 3) Route commands -> ReplayPlayer / overlay stores -> print
    if len(sys.argv) < 2:
        print("Usage: python cli.py <conversation_export.json>  (try data/sample_conversation.json)")
        return

    store = ConversationStore()
    conversation = store.load_export_file(sys.argv[1])
    replay = ReplayService(store=store).generate_replay(conversation.id)

    sync = OverlaySync(geocoder=GeocodeClient() if tripreplay.config.GOOGLE_MAPS_API_KEY else None)
    player = ReplayPlayer(replay, sync=sync)
    player.on_step(_print_step)
    providers = ProviderClient()

    print("Trip Replay CLI")
    print(HELP)
    print("-" * 50)
    print(f"conversation: {conversation.id} ({len(replay.states)} messages)")

    while True:
        try:
            command = input("\n> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            return

        if not command:
            continue

        cmd, _, arg = command.partition(" ")
        cmd = cmd.lower()

        if cmd in {"/exit", "exit", "quit", "/quit"}:
            print("Bye!")
            return

        if cmd in {"/next", "next", "n"}:
            if player.step() is None:
                print("End of conversation.")
            continue

        if cmd in {"/play", "play"}:
            try:
                player.play()
            except KeyboardInterrupt:
                player.pause()
                print(f"\nPaused at message {player.position}.")
            continue

        if cmd in {"/state", "state"}:
            current = player.current
            if current is None:
                print("Nothing played yet.")
            else:
                print(json.dumps(current.state_snapshot.model_dump(mode="json"), indent=2))
            continue

        if cmd in {"/zones", "zones"}:
            for zone in sync.zones.zones:
                flag = "visible" if zone.visible else "hidden"
                print(f"- {zone.label} [{zone.type.value}, {zone.config.get('color')}, {flag}] bounds={zone.bounds}")
            print(f"focus: {sync.zones.focus.current.center} zoom={sync.zones.focus.current.zoom}")
            continue

        if cmd in {"/pings", "pings"}:
            for ping in sync.pings.pings:
                print(f"- {ping.label} [{ping.type.value}] {ping.coordinates}")
            continue

        if cmd in {"/zone", "zone"}:
            if not arg:
                print("Usage: /zone <provider_id>")
                continue
            visible = asyncio.run(sync.zones.toggle_provider_zone(arg.strip(), providers.load_service_zone))
            print(f"provider {arg.strip()} zone visible: {visible}")
            continue

        if cmd in {"/reset", "reset"}:
            player.reset()
            print("Rewound to the start.")
            continue

        print(HELP)


if __name__ == "__main__":
    main()
