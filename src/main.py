"""Main entry point for the posture progress tracker"""
import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from src.config import validate_config, LOG_LEVEL
from src.exceptions import ProgressTrackerError
from src.models.activity import TimeSlot
from src.scheduling.time_slots import format_time_interval, is_active
from src.services.container import ServiceContainer, build_container

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO)
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Track posture check-ins, exercises and progress")
    parser.add_argument("--data-path", help="Directory for JSON data (default: DATA_PATH)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Show level, streaks, slots and goals")
    sub.add_parser("check-in", help="Record a posture check-in")

    complete = sub.add_parser("complete", help="Record an exercise completion")
    complete.add_argument("exercise", help="Exercise title, e.g. 'Chin Tucks'")
    complete.add_argument("--slot", choices=[s.value for s in TimeSlot], default=TimeSlot.QUICK.value)
    complete.add_argument("--duration", type=int, help="Seconds spent (default: exercise duration)")
    complete.add_argument("--force", action="store_true", help="Ignore slot window and cooldown")

    board = sub.add_parser("leaderboard", help="Show the monthly leaderboard")
    board.add_argument("--refresh", action="store_true", help="Force a pull from the remote store")

    join = sub.add_parser("join", help="Opt into the leaderboard")
    join.add_argument("username", help="Display name")
    join.add_argument("--country", help="Two-letter country code")

    reset = sub.add_parser("reset", help="Delete all local progress")
    reset.add_argument("--yes", action="store_true", help="Skip confirmation")
    reset.add_argument("--leaderboard", action="store_true", help="Also delete remote rows and the local profile")

    return parser


def print_status(container: ServiceContainer) -> None:
    service = container.progress_service
    level = service.get_level_progress()
    print(f"⭐ Level {level['level']} - {level['title']}")
    print(f"   {level['xp']} XP, {level['coins']} coins, {level['progress'] * 100:.0f}% to next level")

    print("\n🔥 Streaks")
    for name, streak in service.get_streaks().items():
        print(f"   {name}: {streak['current']} current, {streak['longest']} longest")

    slots = service.get_slot_status()
    print(f"\n⏰ Current slot: {slots['current'] or 'none'}")
    for name, slot in slots["slots"].items():
        if slot["can_start"]:
            state = "available"
        else:
            state = f"cooling down ({format_time_interval(slot['remaining'].total_seconds())})"
        done = " ✅" if slot["completed_today"] else ""
        print(f"   {name}: {state}{done}")
    print(f"   Next: {slots['next']} at {slots['next_available_at']:%Y-%m-%d %H:%M}")

    goals = service.get_goal_progress()
    print(f"\n🎯 Goals ({goals['stats']['completed']}/{goals['stats']['total']} complete)")
    for goal in goals["goals"]:
        print(f"   {goal['title']}: {goal['current']}/{goal['target']}")


def print_leaderboard(container: ServiceContainer) -> None:
    board = container.progress_service.get_leaderboard()
    if not board["joined"]:
        print("You haven't joined the leaderboard yet. Use: join <username>")
        return
    if board["error"]:
        print(f"⚠️  {board['error']}")
    for entry in board["entries"]:
        print(f"{entry.rank:>4}. {entry.flag_emoji} {entry.display_name} - {entry.total_sessions} sessions")
    if board["own_rank"] is not None:
        print(f"\nYour rank: {board['own_rank']}")


async def run_command(container: ServiceContainer, args: argparse.Namespace) -> int:
    service = container.progress_service

    if args.command == "status":
        print_status(container)

    elif args.command == "check-in":
        result = service.record_check_in()
        print(f"✅ Check-in recorded ({result['check_ins_today']} today, streak {result['posture_streak']})")
        for title in result["achievements_unlocked"]:
            print(f"🏆 {title}")

    elif args.command == "complete":
        exercise = container.activity_log.exercise_by_title(args.exercise)
        if exercise is None:
            titles = ", ".join(e.title for e in container.activity_log.exercises)
            print(f"❌ Unknown exercise '{args.exercise}'. Choose from: {titles}")
            return 1

        slot = TimeSlot(args.slot)
        now = container.clock()
        if not args.force:
            if not is_active(slot, now):
                print(f"❌ {slot.value} slot is not open right now")
                return 1
            availability = container.scheduler.can_start(slot, now)
            if not availability.can_start:
                wait = format_time_interval(availability.remaining.total_seconds())
                print(f"⏳ {slot.value} slot is cooling down, try again in {wait}")
                return 1

        result = await service.record_exercise_completion(
            exercise.id,
            args.duration if args.duration is not None else exercise.duration_seconds,
            slot,
        )
        print(f"💪 {exercise.title} done: +{result['xp_awarded']} XP")
        if result["level_up"]:
            print(f"🎉 Level up! You're now level {result['new_level']}")
        for title in result["achievements_unlocked"]:
            print(f"🏆 {title}")
        if container.leaderboard.has_joined_leaderboard and not result["leaderboard_synced"]:
            print(f"⚠️  {container.leaderboard.error_message or 'Leaderboard not updated'}")

    elif args.command == "leaderboard":
        await container.leaderboard.refresh(force=args.refresh)
        print_leaderboard(container)

    elif args.command == "join":
        ok = await container.leaderboard.opt_in(args.username, args.country)
        if not ok:
            print(f"⚠️  Joined locally, but sync failed: {container.leaderboard.error_message}")
        print_leaderboard(container)

    elif args.command == "reset":
        if not args.yes:
            confirm = input("Delete all progress? (yes/no): ")
            if confirm.lower() != "yes":
                print("Cancelled")
                return 1
        await service.reset_all_data()
        if args.leaderboard and not await container.leaderboard.reset_leaderboard():
            print(f"⚠️  {container.leaderboard.error_message}")
            return 1
        print("🧹 All data reset")

    return 0


async def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point"""
    args = build_parser().parse_args(argv)
    container = None
    try:
        validate_config()
        container = build_container(args.data_path)
        return await run_command(container, args)
    except ProgressTrackerError as e:
        print(f"❌ {e.user_message}")
        return 1
    finally:
        if container:
            await container.aclose()


def cli() -> None:
    """Console script entry point"""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
