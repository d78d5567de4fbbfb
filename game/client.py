#!/usr/bin/env python3
# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""
Interactive terminal client.

Two ways to play:
- against the computer in one process (``--offline``)
- against another client sharing a store directory (``--game <id>``)
"""

import argparse
import logging
import random
import time
from typing import Optional

from game.board import ShotResult, format_coordinate, parse_coordinate
from game.config import load_config
from game.context import SessionContext, make_id
from game.engine import GameEngine, GameState
from game.session import GameSession
from game.store import FileStore, MemoryStore

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    GameState.CHOOSING_POSITIONS: "Pick positions",
    GameState.PLAYER1_TURN: "Take your turn",
    GameState.PLAYER2_TURN: "Waiting for opponent...",
    GameState.PLAYER_WON: "You won",
    GameState.PLAYER_LOST: "You lost",
}


def print_help():
    """Print help message."""
    print("""
Placement commands (while picking positions):
  <coordinate>  - Select the ship there, or move the selected ship there
  rotate        - Rotate the selected ship
  random        - Place all ships randomly
  clear         - Clear the selection
  start         - Start playing (offline) / check for an opponent (online)

Battle commands (on your turn):
  <coordinate>  - Fire at the opponent's board (e.g., A5, J10)

Always available:
  board         - Show both boards
  help          - Show this help
  quit          - Exit game
""")


def print_boards(engine: GameEngine) -> None:
    reveal = engine.is_over
    print("\nYour fleet:")
    print(engine.my_board.to_string(show_ships=True))
    print("\nOpponent:")
    print(engine.opponent_board.to_string(show_ships=reveal))
    print()


def describe_shot(is_local_shooter: bool, x: int, y: int, result) -> str:
    who = "You" if is_local_shooter else "Opponent"
    coord = format_coordinate(x, y)
    if not isinstance(result, ShotResult):
        return f"{who} fired at {coord}: miss"
    if result.ship.destroyed:
        return f"{who} fired at {coord}: sunk the {result.ship.name}!"
    return f"{who} fired at {coord}: hit!"


def read_command(prompt: str) -> Optional[str]:
    try:
        return input(prompt).strip()
    except (KeyboardInterrupt, EOFError):
        return None


def handle_placement(engine: GameEngine, cmd: str) -> bool:
    """Apply one placement command. Returns True when placement is finished."""
    if cmd == "start":
        return True
    if cmd == "rotate":
        engine.rotate_selected_ship()
    elif cmd == "random":
        engine.choose_random_ship_locations()
    elif cmd == "clear":
        engine.my_board.select_ship(None)
    else:
        x, y = parse_coordinate(cmd)
        if not engine.square_selected(True, x, y):
            print("Nothing to select or move there.")
    print(engine.my_board.to_string(show_ships=True))
    return False


def handle_shot(engine: GameEngine, cmd: str) -> None:
    x, y = parse_coordinate(cmd)
    if not engine.square_selected(False, x, y):
        print(f"Already fired at {cmd.upper()}.")


def start_offline(engine: GameEngine) -> None:
    """Set up a game against the computer, starting with fleet placement."""
    engine.context.opponent_id = "computer"
    engine.new_game()
    engine.choose_positions()


def play(engine: GameEngine, offline: bool, ai_delay: float, poll_interval: float) -> None:
    """Run the command loop until the game ends or the player quits."""
    ref = engine.context.ref

    while not engine.is_over:
        ref.poll()

        if engine.state == GameState.PLAYER2_TURN:
            if offline:
                time.sleep(ai_delay)
                engine.take_ai_turn()
            else:
                time.sleep(poll_interval)
            continue

        if engine.state not in (GameState.CHOOSING_POSITIONS, GameState.PLAYER1_TURN):
            time.sleep(poll_interval)
            continue

        user_input = read_command("> ")
        if user_input is None:
            print("\nGoodbye!")
            return
        cmd = user_input.lower()

        if cmd in ("quit", "exit", "q"):
            print("Thanks for playing!")
            return
        if cmd == "help":
            print_help()
            continue
        if cmd == "board":
            print_boards(engine)
            continue
        if not cmd:
            continue

        try:
            if engine.state == GameState.CHOOSING_POSITIONS:
                if handle_placement(engine, cmd) and offline:
                    engine.start_game()
                    engine.player1_turn()
            elif engine.state == GameState.PLAYER1_TURN:
                handle_shot(engine, cmd)
        except ValueError as e:
            print(e)

    print_boards(engine)


def main():
    """Run interactive game."""
    parser = argparse.ArgumentParser(description="Play naval combat in the terminal")
    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Path to configuration file'
    )
    parser.add_argument(
        '--offline',
        action='store_true',
        help='Play against the computer instead of another client'
    )
    parser.add_argument(
        '--game',
        type=str,
        default=None,
        help='Game id to create or join (a new one is generated if omitted)'
    )
    parser.add_argument(
        '--player',
        type=str,
        default=None,
        help='Your player id (generated if omitted)'
    )
    parser.add_argument(
        '--store-dir',
        type=str,
        default=None,
        help='Shared store directory (overrides config)'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=None,
        help='Random seed (overrides config)'
    )

    args = parser.parse_args()

    config = load_config(args.config)
    if args.store_dir is not None:
        config['store']['directory'] = args.store_dir
        config['store']['backend'] = 'file'
    if args.seed is not None:
        config['game']['seed'] = args.seed

    logging.basicConfig(
        level=getattr(logging, str(config['logging']['level']).upper(), logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    rng = random.Random(config['game']['seed'])
    game_id = args.game or make_id(rng=rng)
    player_id = args.player or make_id(rng=rng)

    if args.offline:
        store = MemoryStore()
    elif config['store']['backend'] == 'memory':
        parser.error("the memory store only supports --offline play")
    else:
        store = FileStore(config['store']['directory'])

    context = SessionContext(game_id=game_id, player_id=player_id, ref=store.ref(game_id))
    engine = GameEngine(
        context,
        rng=rng,
        max_attempts=config['placement']['max_attempts'],
    )
    engine.on_state_change(lambda state: print(f"*** {STATUS_MESSAGES.get(state, state.value)} ***"))
    engine.on_shot_taken(lambda local, x, y, result: print(describe_shot(local, x, y, result)))

    print("=" * 50)
    print("       NAVAL COMBAT")
    print("=" * 50)

    if args.offline:
        start_offline(engine)
        print("\nPlace your fleet, then type 'start'. Type 'help' for commands.\n")
    else:
        created = GameSession(engine).start()
        if created:
            print(f"\nGame created: {game_id}")
            print(f"Your opponent joins with: --game {game_id} --store-dir {config['store']['directory']}")
            print("Arrange your fleet while waiting; press Enter to check for an opponent.\n")
        else:
            print(f"\nJoined game {game_id} against {context.opponent_id}\n")
    logger.info(f"gameId={game_id}, playerId={player_id}")

    print_boards(engine)
    play(
        engine,
        offline=args.offline,
        ai_delay=config['ai']['delay'],
        poll_interval=config['store']['poll_interval'],
    )


if __name__ == "__main__":
    main()
