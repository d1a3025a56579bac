#!/usr/bin/env python3
"""
Command-line interface for the GENOVA marketplace.

This CLI lets platform users work against the local data directory:
- Send, accept and decline inquiries
- Track project milestones
- Edit an expert's weekly availability
- Work the moderation queue
- Check profile completion
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table

from .config import Settings, build_backend, configure_logging, load_settings
from .errors import AuthorizationError, GenovaError
from .models.availability import DAYS, EngagementType
from .models.common import to_iso, utcnow
from .models.identity import CallerIdentity, Role
from .models.inquiry import InquiryStatus
from .models.milestone import MilestoneStatus
from .models.moderation import ContentType, ModerationAction
from .workflows import (
    AvailabilityCalendar,
    InquiryManager,
    MilestoneTracker,
    ModerationQueue,
    ProfileService,
    ProjectWorkspace,
)

logger = logging.getLogger(__name__)

console = Console()

SESSION_FILE = "current_session.json"


def get_current_caller(settings: Settings) -> Optional[CallerIdentity]:
    """Get the identity saved by ``genova login``."""
    session_file = Path(settings.data_dir) / SESSION_FILE
    if not session_file.exists():
        return None

    with open(session_file) as f:
        session = json.load(f)

    if not session.get("user_id"):
        return None
    return CallerIdentity.from_dict(session)


def set_current_caller(settings: Settings, caller: CallerIdentity) -> None:
    """Remember the identity for later commands."""
    data_dir = Path(settings.data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)
    session = caller.to_dict()
    session["logged_in_at"] = to_iso(utcnow())

    with open(data_dir / SESSION_FILE, "w") as f:
        json.dump(session, f)


def require_login(func):
    """Decorator to require a saved identity."""
    def wrapper(settings, args):
        caller = get_current_caller(settings)
        if not caller:
            console.print("Error: Not logged in. Run 'genova login --user <id> --role <role>' first.")
            sys.exit(1)
        return func(caller, settings, args)
    return wrapper


def parse_day(value: str) -> int:
    """Accept a day index (0 = Sunday) or a day name."""
    if value.isdigit():
        return int(value)
    for index, name in enumerate(DAYS):
        if name.lower().startswith(value.lower()):
            return index
    raise argparse.ArgumentTypeError(f"Unknown day: {value}")


# === Session Commands ===

def cmd_login(settings, args):
    """Save the identity used by later commands."""
    caller = CallerIdentity(user_id=args.user, role=Role(args.role))
    set_current_caller(settings, caller)
    console.print(f"Logged in as {caller.user_id} ({caller.role.value})")


@require_login
def cmd_whoami(caller, settings, args):
    console.print(f"{caller.user_id} ({caller.role.value})")


# === Inquiry Commands ===

@require_login
def cmd_inquiries_list(caller, settings, args):
    """List inquiries addressed to (experts) or sent by (seekers) the caller."""
    manager = InquiryManager(build_backend(settings))

    if caller.role == Role.SEEKER:
        inquiries = manager.list_for_seeker(caller.user_id)
    else:
        status = InquiryStatus(args.status) if args.status else None
        inquiries = manager.list_for_expert(caller.user_id, status=status)

    if not inquiries:
        console.print("No inquiries found.")
        return

    table = Table(title="Inquiries")
    table.add_column("ID")
    table.add_column("Project")
    table.add_column("Budget")
    table.add_column("Timeline")
    table.add_column("Status")
    table.add_column("Received")
    for inquiry in inquiries:
        table.add_row(
            inquiry.id,
            inquiry.project_title,
            inquiry.budget_range or "-",
            inquiry.timeline or "-",
            inquiry.status.value,
            inquiry.created_at.strftime("%Y-%m-%d"),
        )
    console.print(table)


@require_login
def cmd_inquiries_send(caller, settings, args):
    manager = InquiryManager(build_backend(settings))
    inquiry = manager.create(
        caller,
        expert_id=args.expert,
        project_title=args.title,
        description=args.description or "",
        budget_range=args.budget or "",
        timeline=args.timeline or "",
    )
    console.print(f"Inquiry sent: {inquiry.id}")


@require_login
def cmd_inquiries_accept(caller, settings, args):
    inquiry = InquiryManager(build_backend(settings)).accept(caller, args.inquiry_id)
    console.print(f"Inquiry {inquiry.id} accepted")


@require_login
def cmd_inquiries_decline(caller, settings, args):
    inquiry = InquiryManager(build_backend(settings)).decline(caller, args.inquiry_id)
    console.print(f"Inquiry {inquiry.id} declined")


# === Milestone Commands ===

@require_login
def cmd_milestones_list(caller, settings, args):
    """Show a project's milestones."""
    backend = build_backend(settings)
    if not ProjectWorkspace(backend).get_project(args.project_id).is_participant(caller):
        raise AuthorizationError(f"{caller.user_id} is not part of project {args.project_id}")
    milestones = MilestoneTracker(backend).list(args.project_id)

    if not milestones:
        console.print("No milestones yet.")
        return

    table = Table(title=f"Milestones: {args.project_id}")
    table.add_column("ID")
    table.add_column("Title")
    table.add_column("Due")
    table.add_column("Status")
    table.add_column("Completed")
    for milestone in milestones:
        table.add_row(
            milestone.id,
            milestone.title,
            milestone.due_date or "-",
            milestone.status.label,
            milestone.completed_at.strftime("%Y-%m-%d") if milestone.completed_at else "-",
        )
    console.print(table)


@require_login
def cmd_milestones_add(caller, settings, args):
    milestone = MilestoneTracker(build_backend(settings)).add(
        caller, args.project_id, args.title, description=args.description or "", due_date=args.due
    )
    console.print(f"Milestone added: {milestone.id}")


@require_login
def cmd_milestones_toggle(caller, settings, args):
    milestone = MilestoneTracker(build_backend(settings)).toggle_status(caller, args.milestone_id)
    console.print(f"Milestone {milestone.id} is now {milestone.status.label}")


@require_login
def cmd_milestones_status(caller, settings, args):
    milestone = MilestoneTracker(build_backend(settings)).set_status(
        caller, args.milestone_id, MilestoneStatus(args.status)
    )
    console.print(f"Milestone {milestone.id} is now {milestone.status.label}")


# === Availability Commands ===

@require_login
def cmd_availability_show(caller, settings, args):
    """Print the weekly calendar."""
    expert_id = args.expert or caller.user_id
    week = AvailabilityCalendar(build_backend(settings)).week(expert_id)

    table = Table(title=f"Availability: {expert_id}")
    table.add_column("Day")
    table.add_column("Slot ID")
    table.add_column("Time")
    table.add_column("Engagement")
    table.add_column("Available")
    for day, slots in week.items():
        if not slots:
            table.add_row(day, "-", "No availability set", "", "")
        for slot in slots:
            table.add_row(
                day,
                slot.id,
                slot.label,
                slot.engagement_type.value,
                "yes" if slot.is_available else "no",
            )
    console.print(table)


@require_login
def cmd_availability_add(caller, settings, args):
    slot = AvailabilityCalendar(build_backend(settings)).add_slot(caller, args.day)
    console.print(f"Slot {slot.id} added on {slot.day_name} ({slot.label})")


@require_login
def cmd_availability_edit(caller, settings, args):
    calendar = AvailabilityCalendar(build_backend(settings))
    if args.on or args.off:
        calendar.toggle_available(caller, args.slot_id, bool(args.on))
    slot = calendar.update_slot(
        caller,
        args.slot_id,
        start_time=args.start,
        end_time=args.end,
        engagement_type=EngagementType(args.type) if args.type else None,
    )
    console.print(f"Slot {slot.id}: {slot.day_name} {slot.label} {slot.engagement_type.value}")


@require_login
def cmd_availability_remove(caller, settings, args):
    AvailabilityCalendar(build_backend(settings)).remove_slot(caller, args.slot_id)
    console.print(f"Slot {args.slot_id} removed")


# === Moderation Commands ===

@require_login
def cmd_moderation_pending(caller, settings, args):
    """Show the moderation queue."""
    content_type = ContentType(args.type) if args.type else None
    items = ModerationQueue(build_backend(settings)).pending(content_type)

    if not items:
        console.print("Moderation queue is empty.")
        return

    table = Table(title="Pending moderation")
    table.add_column("ID")
    table.add_column("Type")
    table.add_column("Content")
    table.add_column("Reason")
    table.add_column("Flagged")
    for item in items:
        preview = item.content_preview[:40] + ".." if len(item.content_preview) > 42 else item.content_preview
        table.add_row(
            item.id,
            item.content_type.value,
            preview,
            item.flagged_reason or "-",
            item.flagged_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@require_login
def cmd_moderation_flag(caller, settings, args):
    item = ModerationQueue(build_backend(settings)).flag(
        caller, ContentType(args.type), args.content_ref, args.reason or ""
    )
    console.print(f"Flagged for review: {item.id}")


@require_login
def cmd_moderation_decide(caller, settings, args):
    item = ModerationQueue(build_backend(settings)).moderate(
        caller, args.item_id, ModerationAction(args.action), note=args.note
    )
    console.print(f"Item {item.id} {item.status.value}")


# === Profile Commands ===

@require_login
def cmd_profile_completion(caller, settings, args):
    """Show the profile completion checklist."""
    user_id = args.user or caller.user_id
    report = ProfileService(build_backend(settings)).completion(user_id)

    console.print(f"\nProfile completion: {report.percentage:.0f}% ({report.completed}/{report.total})")
    for item in report.items:
        mark = "[green]done[/green]" if item.completed else "[red]todo[/red]"
        console.print(f"  {mark}  {item.label}", highlight=False)


# === Main CLI ===

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="genova",
        description="GENOVA marketplace CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Login:          genova login --user expert-1 --role expert
  Inquiries:      genova inquiries list --status pending
  Accept:         genova inquiries accept <inquiry-id>
  Availability:   genova availability add monday
  Moderation:     genova moderation pending
  Completion:     genova profile completion
        """
    )
    parser.add_argument("--config", type=Path, help="YAML settings file")
    parser.add_argument("--data-dir", type=Path, help="Override the data directory")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Login
    login_parser = subparsers.add_parser("login", help="Set the acting user")
    login_parser.add_argument("--user", required=True, help="User ID")
    login_parser.add_argument("--role", required=True, choices=[r.value for r in Role])
    login_parser.set_defaults(func=cmd_login)

    whoami_parser = subparsers.add_parser("whoami", help="Show the acting user")
    whoami_parser.set_defaults(func=cmd_whoami)

    # Inquiries
    inquiries_parser = subparsers.add_parser("inquiries", help="Inquiry management")
    inquiries_sub = inquiries_parser.add_subparsers(dest="inquiries_command")

    inquiries_list = inquiries_sub.add_parser("list", help="List inquiries")
    inquiries_list.add_argument("--status", choices=[s.value for s in InquiryStatus])
    inquiries_list.set_defaults(func=cmd_inquiries_list)

    inquiries_send = inquiries_sub.add_parser("send", help="Send an inquiry to an expert")
    inquiries_send.add_argument("--expert", required=True, help="Expert user ID")
    inquiries_send.add_argument("--title", required=True, help="Project title")
    inquiries_send.add_argument("--description", help="Project description")
    inquiries_send.add_argument("--budget", help="Budget range")
    inquiries_send.add_argument("--timeline", help="Expected timeline")
    inquiries_send.set_defaults(func=cmd_inquiries_send)

    inquiries_accept = inquiries_sub.add_parser("accept", help="Accept a pending inquiry")
    inquiries_accept.add_argument("inquiry_id", help="Inquiry ID")
    inquiries_accept.set_defaults(func=cmd_inquiries_accept)

    inquiries_decline = inquiries_sub.add_parser("decline", help="Decline a pending inquiry")
    inquiries_decline.add_argument("inquiry_id", help="Inquiry ID")
    inquiries_decline.set_defaults(func=cmd_inquiries_decline)

    # Milestones
    milestones_parser = subparsers.add_parser("milestones", help="Project milestones")
    milestones_sub = milestones_parser.add_subparsers(dest="milestones_command")

    milestones_list = milestones_sub.add_parser("list", help="List milestones")
    milestones_list.add_argument("project_id", help="Project ID")
    milestones_list.set_defaults(func=cmd_milestones_list)

    milestones_add = milestones_sub.add_parser("add", help="Add a milestone")
    milestones_add.add_argument("project_id", help="Project ID")
    milestones_add.add_argument("--title", required=True, help="Milestone title")
    milestones_add.add_argument("--description", help="Milestone description")
    milestones_add.add_argument("--due", help="Due date (YYYY-MM-DD)")
    milestones_add.set_defaults(func=cmd_milestones_add)

    milestones_toggle = milestones_sub.add_parser("toggle", help="Toggle pending/completed")
    milestones_toggle.add_argument("milestone_id", help="Milestone ID")
    milestones_toggle.set_defaults(func=cmd_milestones_toggle)

    milestones_status = milestones_sub.add_parser("status", help="Set a milestone status")
    milestones_status.add_argument("milestone_id", help="Milestone ID")
    milestones_status.add_argument("status", choices=[s.value for s in MilestoneStatus])
    milestones_status.set_defaults(func=cmd_milestones_status)

    # Availability
    availability_parser = subparsers.add_parser("availability", help="Weekly availability")
    availability_sub = availability_parser.add_subparsers(dest="availability_command")

    availability_show = availability_sub.add_parser("show", help="Show the weekly calendar")
    availability_show.add_argument("--expert", help="Expert user ID (default: you)")
    availability_show.set_defaults(func=cmd_availability_show)

    availability_add = availability_sub.add_parser("add", help="Add a 09:00-17:00 slot")
    availability_add.add_argument("day", type=parse_day, help="Day index (0=Sunday) or name")
    availability_add.set_defaults(func=cmd_availability_add)

    availability_edit = availability_sub.add_parser("edit", help="Edit a slot")
    availability_edit.add_argument("slot_id", help="Slot ID")
    availability_edit.add_argument("--start", help="Start time (HH:MM)")
    availability_edit.add_argument("--end", help="End time (HH:MM)")
    availability_edit.add_argument("--type", choices=[e.value for e in EngagementType])
    toggle = availability_edit.add_mutually_exclusive_group()
    toggle.add_argument("--on", action="store_true", help="Mark available")
    toggle.add_argument("--off", action="store_true", help="Mark unavailable")
    availability_edit.set_defaults(func=cmd_availability_edit)

    availability_remove = availability_sub.add_parser("remove", help="Remove a slot")
    availability_remove.add_argument("slot_id", help="Slot ID")
    availability_remove.set_defaults(func=cmd_availability_remove)

    # Moderation
    moderation_parser = subparsers.add_parser("moderation", help="Content moderation")
    moderation_sub = moderation_parser.add_subparsers(dest="moderation_command")

    moderation_pending = moderation_sub.add_parser("pending", help="Show the queue")
    moderation_pending.add_argument("--type", choices=[c.value for c in ContentType])
    moderation_pending.set_defaults(func=cmd_moderation_pending)

    moderation_flag = moderation_sub.add_parser("flag", help="Flag content")
    moderation_flag.add_argument("type", choices=[c.value for c in ContentType])
    moderation_flag.add_argument("content_ref", help="ID of the flagged content")
    moderation_flag.add_argument("--reason", help="Why it was flagged")
    moderation_flag.set_defaults(func=cmd_moderation_flag)

    for action in ModerationAction:
        decide = moderation_sub.add_parser(action.value, help=f"{action.value.title()} a flagged item")
        decide.add_argument("item_id", help="Moderation item ID")
        decide.add_argument("--note", help="Moderator note")
        decide.set_defaults(func=cmd_moderation_decide, action=action.value)

    # Profile
    profile_parser = subparsers.add_parser("profile", help="Profile")
    profile_sub = profile_parser.add_subparsers(dest="profile_command")

    profile_completion = profile_sub.add_parser("completion", help="Show profile completion")
    profile_completion.add_argument("--user", help="User ID (default: you)")
    profile_completion.set_defaults(func=cmd_profile_completion)

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    settings = load_settings(args.config)
    if args.data_dir:
        settings.data_dir = args.data_dir
    configure_logging(settings.log_level)

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    try:
        args.func(settings, args)
    except GenovaError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        console.print(f"Error: {e}", markup=False, highlight=False)
        sys.exit(1)


if __name__ == "__main__":
    main()
