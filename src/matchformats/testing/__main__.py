"""Testing CLI for Match Formats.

Generates random events, recomputes standings and validates schedules
stored as JSON event files. With no arguments it starts an interactive
prompt with command completion.
"""

# Match Formats
# Copyright (C) 2025  Match Formats developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

import argparse
import json
import sys
from pathlib import Path
from typing import Dict, List, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import NestedCompleter, WordCompleter
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.styles import Style

from matchformats.exceptions import MatchFormatsException
from matchformats.models.event_format import EventFormat
from matchformats.models.match import MatchStub
from matchformats.models.participant import Participant
from matchformats.models.round_data import GenerationResult, Pairing, Round
from matchformats.models.settings import settings_for_format
from matchformats.utils import setup_logger

logger = setup_logger(__name__)

FORMAT_CHOICES = [f.value for f in EventFormat]
DISTRIBUTION_CHOICES = ["uniform", "normal", "skewed", "club"]
PATTERN_CHOICES = ["realistic", "balanced", "upset_friendly", "predictable", "random"]


# ANSI color codes for terminal output
class Colors:
    HEADER = "\033[95m"
    OKBLUE = "\033[94m"
    OKCYAN = "\033[96m"
    OKGREEN = "\033[92m"
    WARNING = "\033[93m"
    FAIL = "\033[91m"
    ENDC = "\033[0m"
    BOLD = "\033[1m"


COMMANDS = {
    "generate": {
        "description": "Generate and play a random event",
        "options": {
            "--format": "Event format",
            "--participants": "Number of participants",
            "--rounds": "Rounds, legs or steps",
            "--distribution": "Rating distribution",
            "--pattern": "Result pattern",
            "--seed": "Random seed",
            "--settings": "JSON file with format settings",
            "--output": "Write the event file here",
        },
    },
    "standings": {
        "description": "Compute standings from an event file",
        "options": {"--file": "Event file", "--format": "Override the event format"},
    },
    "validate": {
        "description": "Validate the schedule in an event file",
        "options": {
            "--file": "Event file",
            "--detailed": "List every check",
            "--export": "Write the report to a file",
        },
    },
    "help": {"description": "Show help", "options": {}},
}


# ========== Event Files ==========


def event_to_dict(
    event_format: EventFormat,
    event_id: str,
    participants: List[Participant],
    result: Optional[GenerationResult],
    matches: List[MatchStub],
    settings=None,
) -> Dict:
    """Serialize an event for the standings and validate commands."""
    data = {
        "format": event_format.value,
        "event_id": event_id,
        "settings": settings.to_dict() if settings is not None else None,
        "participants": [p.to_dict() for p in participants],
        "matches": [m.to_dict() for m in matches],
        "schedule": [],
        "pools": None,
    }
    if result is not None:
        data["schedule"] = [r.to_dict() for r in result.schedule]
        if result.pools:
            data["pools"] = {
                name: [p.id for p in members] for name, members in result.pools.items()
            }
    return data


def load_event(path: Path) -> Dict:
    """Read an event file back into model objects."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    participants = [Participant.from_dict(p) for p in data.get("participants", [])]
    matches = [MatchStub.from_dict(m) for m in data.get("matches", [])]

    sides: Dict[str, Participant] = {p.id: p for p in participants}
    for match in matches:
        for side in (match.side_a, match.side_b):
            if side is not None:
                sides.setdefault(side.id, side)

    schedule = [
        Round(
            round_number=r["round_number"],
            pairings=[
                Pairing(sides[a], sides[b] if b is not None else None)
                for a, b in r.get("pairings", [])
            ],
            resting=[sides[pid] for pid in r.get("resting", [])],
        )
        for r in data.get("schedule", [])
    ]
    pools = None
    if data.get("pools"):
        pools = {
            name: [sides[pid] for pid in ids] for name, ids in data["pools"].items()
        }

    event_format = EventFormat.parse(data["format"])
    return {
        "format": event_format,
        "event_id": data.get("event_id", ""),
        "settings": settings_for_format(event_format, data.get("settings")),
        "participants": participants,
        "matches": matches,
        "result": GenerationResult(matches=matches, schedule=schedule, pools=pools),
    }


# ========== Output ==========


def print_banner():
    """Print the application banner."""
    banner = f"""
{Colors.OKBLUE}+-------------------------------------------------+
|              MATCH FORMATS TEST CLI             |
+-------------------------------------------------+{Colors.ENDC}

Type {Colors.BOLD}/help{Colors.ENDC} to see all available commands
Type {Colors.BOLD}exit{Colors.ENDC} or {Colors.BOLD}quit{Colors.ENDC} to leave interactive mode
"""
    print(banner)


def print_commands_list():
    """Print list of all available commands."""
    print(f"\n{Colors.BOLD}Available Commands:{Colors.ENDC}\n")
    for cmd, info in COMMANDS.items():
        print(f"  {Colors.OKGREEN}{cmd:15}{Colors.ENDC} - {info['description']}")
    print()


def print_command_help(command: str):
    """Print detailed help for a specific command."""
    if command not in COMMANDS:
        print(f"{Colors.FAIL}Unknown command: {command}{Colors.ENDC}")
        print_commands_list()
        return

    cmd_info = COMMANDS[command]
    print(f"\n{Colors.BOLD}{Colors.OKBLUE}Command: {command}{Colors.ENDC}")
    print(f"{Colors.BOLD}Description:{Colors.ENDC} {cmd_info['description']}\n")
    if cmd_info["options"]:
        print(f"{Colors.BOLD}Options:{Colors.ENDC}")
        for option, description in cmd_info["options"].items():
            print(f"  {Colors.OKCYAN}{option:20}{Colors.ENDC} {description}")
    print()


def print_standings(rows) -> None:
    print(f"  {'#':>3}  {'Participant':24} {'W':>3} {'L':>3} {'D':>3} {'+/-':>5}")
    for row in rows:
        marker = "=" if row.tied_with_previous else " "
        print(
            f"  {row.rank:>3}{marker} {row.participant.name[:24]:24} "
            f"{row.wins:>3} {row.losses:>3} {row.draws:>3} "
            f"{row.point_differential:>+5}"
        )


def create_completer():
    """Create autocomplete completer for interactive mode."""
    completions = {}
    for cmd, info in COMMANDS.items():
        options_completer = (
            WordCompleter(list(info["options"].keys())) if info["options"] else None
        )
        completions[cmd] = options_completer
        completions[f"/{cmd}"] = options_completer
    completions["/list"] = None
    return NestedCompleter.from_nested_dict(completions)


# ========== Commands ==========


def run_generate_command(args: argparse.Namespace) -> int:
    """Run the generate (RTG) command."""
    from matchformats.testing.rtg import (
        RandomEventGenerator,
        RatingDistribution,
        ResultPattern,
        RTGConfig,
        summarize_event,
    )

    event_format = EventFormat.parse(args.format)
    print(f"\n{Colors.BOLD}Generating {event_format.value} event...{Colors.ENDC}")

    config = RTGConfig(
        num_participants=args.participants,
        event_format=event_format,
        rounds=args.rounds,
        rating_distribution=RatingDistribution(args.distribution),
        result_pattern=ResultPattern(args.pattern),
        seed=args.seed,
    )
    settings = None
    if args.settings:
        with open(args.settings, "r", encoding="utf-8") as f:
            settings = settings_for_format(event_format, json.load(f))
        logger.info("Loaded %s settings from %s", event_format.value, args.settings)

    rtg = RandomEventGenerator(config, settings)
    event_data = rtg.generate_complete_event()
    summary = summarize_event(event_data)

    if args.output:
        output_path = Path(args.output)
        content = event_to_dict(
            event_format,
            config.event_id,
            event_data["participants"],
            event_data.get("result"),
            event_data.get("matches", []),
            rtg.settings(),
        )
        output_path.write_text(json.dumps(content, indent=2), encoding="utf-8")
        print(f"{Colors.OKGREEN}Event saved to: {output_path}{Colors.ENDC}")

    print(f"\n{Colors.BOLD}Event Generated:{Colors.ENDC}")
    print(f"  Participants: {summary['participants']}")
    print(f"  Matches: {summary['matches']}")
    if summary.get("champion_id"):
        print(f"  Champion: {summary['champion_id']}")
    for report in summary["validation"]:
        color = Colors.OKGREEN if report["ok"] else Colors.FAIL
        print(f"  {color}{report['summary']}{Colors.ENDC}")
    if "standings" in event_data:
        print(f"\n{Colors.BOLD}Standings:{Colors.ENDC}")
        print_standings(event_data["standings"])
    return 0


def run_standings_command(args: argparse.Namespace) -> int:
    """Recompute standings from an event file."""
    from matchformats.controllers.schedule_manager import ScheduleManager
    from matchformats.pairing.pool_play import calculate_all_pool_standings

    file_path = Path(args.file)
    if not file_path.exists():
        print(f"{Colors.FAIL}Error: File not found: {file_path}{Colors.ENDC}")
        return 1

    event = load_event(file_path)
    event_format = EventFormat.parse(args.format) if args.format else event["format"]
    pools = event["result"].pools
    if event_format is EventFormat.POOL and pools:
        for pool_name, rows in calculate_all_pool_standings(
            pools, event["matches"], event["settings"]
        ).items():
            print(f"\n{Colors.BOLD}{pool_name}{Colors.ENDC}")
            print_standings(rows)
        return 0

    rows = ScheduleManager.calculate_standings(
        event_format, event["participants"], event["matches"], event["settings"]
    )
    print(f"\n{Colors.BOLD}Standings ({event_format.value}):{Colors.ENDC}")
    print_standings(rows)
    return 0


def run_validate_command(args: argparse.Namespace) -> int:
    """Run the validation command."""
    from matchformats.validation.format_validator import create_format_validator

    file_path = Path(args.file)
    if not file_path.exists():
        print(f"{Colors.FAIL}Error: File not found: {file_path}{Colors.ENDC}")
        return 1

    print(f"\n{Colors.BOLD}Validating event: {file_path}{Colors.ENDC}")
    event = load_event(file_path)
    validator = create_format_validator()
    report = validator.validate_result(
        event["format"], event["result"], event["participants"]
    )

    print(f"\n{Colors.BOLD}Validation Results:{Colors.ENDC}")
    print(f"  Compliance: {report.compliance_percentage:.1f}%")
    print(f"  Summary: {report.summary}")

    if args.detailed:
        print(f"\n{Colors.BOLD}Checks:{Colors.ENDC}")
        for result in report.criteria_results:
            print(f"  - {result.criterion}: {result.status.value} {result.description}")

    if args.export:
        export_path = Path(args.export)
        if export_path.suffix == ".json":
            export_data = {
                "ok": report.ok,
                "compliance_percentage": report.compliance_percentage,
                "summary": report.summary,
                "violations": [
                    {"criterion": v.criterion, "description": v.description}
                    for v in report.violations
                ],
                "warnings": [
                    {"criterion": w.criterion, "description": w.description}
                    for w in report.warnings
                ],
            }
            export_path.write_text(json.dumps(export_data, indent=2), encoding="utf-8")
        else:
            export_path.write_text(report.summary, encoding="utf-8")
        print(f"\n{Colors.OKGREEN}Report exported to: {export_path}{Colors.ENDC}")

    return 0 if report.ok else 1


# ========== Parsers ==========


def add_generate_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--format", choices=FORMAT_CHOICES, default="round_robin")
    parser.add_argument("--participants", type=int, default=8)
    parser.add_argument("--rounds", type=int)
    parser.add_argument("--distribution", choices=DISTRIBUTION_CHOICES, default="normal")
    parser.add_argument("--pattern", choices=PATTERN_CHOICES, default="realistic")
    parser.add_argument("--seed", type=int)
    parser.add_argument("--settings")
    parser.add_argument("--output")


def add_standings_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--file", required=True)
    parser.add_argument("--format", choices=FORMAT_CHOICES)


def add_validate_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--file", required=True)
    parser.add_argument("--detailed", action="store_true")
    parser.add_argument("--export")


SUBCOMMANDS = {
    "generate": (add_generate_arguments, run_generate_command),
    "standings": (add_standings_arguments, run_standings_command),
    "validate": (add_validate_arguments, run_validate_command),
}


def create_subcommand_parser(command: str) -> argparse.ArgumentParser:
    """Standalone parser for one subcommand, used by interactive mode."""
    add_arguments, _ = SUBCOMMANDS[command]
    parser = argparse.ArgumentParser(
        prog=command, description=COMMANDS[command]["description"]
    )
    add_arguments(parser)
    return parser


def create_main_parser():
    """Create main argument parser."""
    parser = argparse.ArgumentParser(
        prog="matchformats-test",
        description="Testing CLI for Match Formats",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Interactive mode
  matchformats-test

  # Play a random Swiss event and save it
  matchformats-test generate --format swiss --participants 12 --output swiss.json

  # Recompute standings
  matchformats-test standings --file swiss.json

  # Validate the stored schedule
  matchformats-test validate --file swiss.json --detailed
        """,
    )
    parser.add_argument(
        "--interactive", "-i", action="store_true", help="Start in interactive mode"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    for command, (add_arguments, func) in SUBCOMMANDS.items():
        sub = subparsers.add_parser(command, help=COMMANDS[command]["description"])
        add_arguments(sub)
        sub.set_defaults(func=func)
    return parser


def run_command(command: str, args_list: List[str]) -> int:
    """Parse and run one subcommand. Engine errors are reported, not raised."""
    parser = create_subcommand_parser(command)
    args = parser.parse_args(args_list)
    try:
        return SUBCOMMANDS[command][1](args)
    except MatchFormatsException as e:
        print(f"{Colors.FAIL}Error: {e}{Colors.ENDC}")
        logger.error("%s failed: %s", command, e)
        return 1


def run_interactive_mode():
    """Run in interactive mode with autocomplete."""
    print_banner()
    session = PromptSession(
        completer=create_completer(),
        history=InMemoryHistory(),
        style=Style.from_dict({"prompt": "#00aa00 bold"}),
    )

    while True:
        try:
            user_input = session.prompt("matchformats-test> ").strip()
        except KeyboardInterrupt:
            print(f"\n{Colors.WARNING}Use 'exit' or 'quit' to leave{Colors.ENDC}")
            continue
        except EOFError:
            print(f"\n{Colors.OKGREEN}Goodbye!{Colors.ENDC}\n")
            break

        if not user_input:
            continue
        if user_input in ["exit", "quit", "q"]:
            print(f"\n{Colors.OKGREEN}Goodbye!{Colors.ENDC}\n")
            break
        if user_input in ["/help", "help", "?", "/list"]:
            print_commands_list()
            continue

        parts = user_input.split()
        command = parts[0].lstrip("/")
        if command == "help":
            if len(parts) > 1:
                print_command_help(parts[1].lstrip("/"))
            else:
                print_commands_list()
            continue
        if command not in SUBCOMMANDS:
            print(f"{Colors.FAIL}Unknown command: {command}{Colors.ENDC}")
            print(f"Type {Colors.BOLD}/help{Colors.ENDC} to see available commands")
            continue

        try:
            run_command(command, parts[1:])
        except SystemExit:
            # argparse exits on bad arguments
            continue
    return 0


def run_standard_mode():
    """Run in standard CLI mode (non-interactive)."""
    parser = create_main_parser()
    args = parser.parse_args()

    if args.interactive:
        return run_interactive_mode()
    if hasattr(args, "func"):
        try:
            return args.func(args)
        except MatchFormatsException as e:
            print(f"{Colors.FAIL}Error: {e}{Colors.ENDC}")
            return 1
    parser.print_help()
    return 0


def main() -> int:
    """Main entry point for matchformats-test CLI."""
    if len(sys.argv) == 1:
        return run_interactive_mode()
    if "--interactive" in sys.argv or "-i" in sys.argv:
        return run_interactive_mode()
    return run_standard_mode()


if __name__ == "__main__":
    sys.exit(main())
