"""
Timesheet CLI.

Loads configuration, configures logging, signs in and runs one command.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import uuid
from typing import Any, Optional

import structlog

from timesheet_shared.access import display_name
from timesheet_shared.errors import TimesheetError
from timesheet_shared.logging import configure_logging
from timesheet_shared.preferences import Accent, Density, Radius
from timesheet_shared.schemas.common import ActiveFilter, Role, Scope, WeekStart
from timesheet_shared.schemas.projects import week_start_label

from .app import TimesheetApp
from .config import load_config
from .resolver import ResolverStatus
from .workspace import Workspace


class CommandFailed(Exception):
    pass


def _check(workspace: Workspace, result: Any) -> Any:
    if workspace.error is not None or (workspace.message and not result):
        raise CommandFailed(workspace.message or "Operation failed.")
    return result


def _parse_assignments(pairs: list[str]) -> dict[str, Optional[str]]:
    patch: dict[str, Optional[str]] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise CommandFailed(f"Expected field=value, got {pair!r}")
        patch[key.strip()] = None if value.strip().lower() in ("", "null", "none") else value
    return patch


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

async def cmd_whoami(app: TimesheetApp, args: argparse.Namespace) -> None:
    state = app.state
    print(f"status: {state.status.value}")
    if state.profile is not None:
        p = state.profile
        print(f"id:     {p.id}")
        print(f"name:   {display_name(p)}")
        print(f"role:   {p.role.value}")
        print(f"org:    {p.org_id}")
    if state.error:
        print(f"error:  {state.error}")


async def cmd_prefs_show(app: TimesheetApp, args: argparse.Namespace) -> None:
    for key, value in app.prefs.effective.as_dataset().items():
        print(f"{key}: {value}")


async def cmd_prefs_set(app: TimesheetApp, args: argparse.Namespace) -> None:
    values = app.prefs.effective.as_dataset()
    for key in ("accent", "density", "radius"):
        if getattr(args, key):
            values[key] = getattr(args, key)
    saved = await app.prefs.save(values, app.resolver)
    print("Saved: " + ", ".join(f"{k}={v}" for k, v in saved.as_dataset().items()))


async def cmd_people_list(app: TimesheetApp, args: argparse.Namespace) -> None:
    people = app.people
    _check(people, await people.load_rows(Scope(args.scope)))
    role = Role(args.role) if args.role else None
    for row in people.filtered_rows(args.query, role, ActiveFilter(args.active), Scope(args.scope)):
        status = "active" if row.active else "inactive"
        edit = "editable" if people.can_edit_row(row.id) else "read-only"
        print(f"{row.id}  {display_name(row):<30} {row.role.value:<11} {status:<9} {edit}")


async def cmd_people_set(app: TimesheetApp, args: argparse.Namespace) -> None:
    people = app.people
    _check(people, await people.load_rows())
    updated = _check(people, await people.save_row(args.profile_id, _parse_assignments(args.fields)))
    print(f"{people.message} {display_name(updated)}")


async def cmd_projects_list(app: TimesheetApp, args: argparse.Namespace) -> None:
    projects = app.projects
    _check(projects, await projects.reload_projects(Scope(args.scope)))
    counts = projects.counts()
    print(f"total: {counts.total}  active: {counts.active}  inactive: {counts.inactive}")
    for p in projects.filtered_projects(args.query, ActiveFilter(args.active)):
        status = "active" if p.is_active else "inactive"
        print(f"{p.id}  {p.name:<30} {status:<9} {week_start_label(p.week_start)}")


async def cmd_projects_create(app: TimesheetApp, args: argparse.Namespace) -> None:
    projects = app.projects
    _check(projects, await projects.create_project(args.name, WeekStart(args.week_start)))
    print(projects.message)


async def cmd_projects_activate(app: TimesheetApp, args: argparse.Namespace) -> None:
    projects = app.projects
    updated = _check(projects, await projects.toggle_project_active(args.project_id, args.active))
    print(f"{updated.name}: {'active' if updated.is_active else 'inactive'}")


async def cmd_projects_week_start(app: TimesheetApp, args: argparse.Namespace) -> None:
    projects = app.projects
    updated = _check(
        projects, await projects.update_week_start(args.project_id, WeekStart(args.week_start))
    )
    print(f"{updated.name}: {week_start_label(updated.week_start)}")


async def cmd_projects_assign(app: TimesheetApp, args: argparse.Namespace) -> None:
    projects = app.projects
    _check(projects, await projects.load_assignments(args.profile_id) or True)
    row = _check(projects, await projects.toggle_assignment(args.project_id, args.assigned))
    if row is None:
        print("No assignment to remove.")
    else:
        print(f"{'Assigned' if row.active else 'Unassigned'} {args.profile_id} on {args.project_id}")


async def cmd_projects_members(app: TimesheetApp, args: argparse.Namespace) -> None:
    projects = app.projects
    for m in _check(projects, await projects.load_project_members(args.project_id)):
        print(f"{m.profile_id}  {display_name(m):<30} {m.role or ''}")


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="timesheet", description="Timesheet workforce client")
    parser.add_argument(
        "-c", "--config",
        default="timesheet.yaml",
        help="Path to configuration file (default: timesheet.yaml)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("whoami", help="Show the resolved session and profile")
    p.set_defaults(handler=cmd_whoami)

    prefs = sub.add_parser("prefs", help="Appearance preferences").add_subparsers(dest="action", required=True)
    p = prefs.add_parser("show")
    p.set_defaults(handler=cmd_prefs_show)
    p = prefs.add_parser("set")
    p.add_argument("--accent", choices=[a.value for a in Accent])
    p.add_argument("--density", choices=[d.value for d in Density])
    p.add_argument("--radius", choices=[r.value for r in Radius])
    p.set_defaults(handler=cmd_prefs_set)

    people = sub.add_parser("people", help="Profiles").add_subparsers(dest="action", required=True)
    p = people.add_parser("list")
    p.add_argument("-q", "--query", default="")
    p.add_argument("--role", choices=[r.value for r in Role])
    p.add_argument("--active", choices=[a.value for a in ActiveFilter], default=ActiveFilter.ALL.value)
    p.add_argument("--scope", choices=[s.value for s in Scope], default=Scope.VISIBLE.value)
    p.set_defaults(handler=cmd_people_list)
    p = people.add_parser("set", help="Update fields: field=value ...")
    p.add_argument("profile_id", type=uuid.UUID)
    p.add_argument("fields", nargs="+")
    p.set_defaults(handler=cmd_people_set)

    projects = sub.add_parser("projects", help="Projects and assignments").add_subparsers(dest="action", required=True)
    p = projects.add_parser("list")
    p.add_argument("-q", "--query", default="")
    p.add_argument("--active", choices=[a.value for a in ActiveFilter], default=ActiveFilter.ALL.value)
    p.add_argument("--scope", choices=[s.value for s in Scope], default=Scope.ALL_ORG.value)
    p.set_defaults(handler=cmd_projects_list)
    p = projects.add_parser("create")
    p.add_argument("name")
    p.add_argument("--week-start", choices=[w.value for w in WeekStart], default=WeekStart.SUNDAY.value)
    p.set_defaults(handler=cmd_projects_create)
    for name, active in (("activate", True), ("deactivate", False)):
        p = projects.add_parser(name)
        p.add_argument("project_id", type=uuid.UUID)
        p.set_defaults(handler=cmd_projects_activate, active=active)
    p = projects.add_parser("week-start")
    p.add_argument("project_id", type=uuid.UUID)
    p.add_argument("week_start", choices=[w.value for w in WeekStart])
    p.set_defaults(handler=cmd_projects_week_start)
    for name, assigned in (("assign", True), ("unassign", False)):
        p = projects.add_parser(name)
        p.add_argument("profile_id", type=uuid.UUID)
        p.add_argument("project_id", type=uuid.UUID)
        p.set_defaults(handler=cmd_projects_assign, assigned=assigned)
    p = projects.add_parser("members")
    p.add_argument("project_id", type=uuid.UUID)
    p.set_defaults(handler=cmd_projects_members)

    return parser


async def dispatch(app: TimesheetApp, args: argparse.Namespace) -> int:
    async with app:
        state = await app.start()
        if args.command != "whoami" and state.status != ResolverStatus.READY:
            print(f"Error: {state.error or 'Not signed in.'}", file=sys.stderr)
            return 1
        await args.handler(app, args)
    return 0


def run() -> None:
    """CLI entry point."""
    args = build_parser().parse_args()

    try:
        config = load_config(args.config)
    except FileNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except Exception as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(1)

    configure_logging(config.logging.level, config.logging.format)
    log = structlog.get_logger()
    log.debug("cli.config_loaded", config_path=args.config, command=args.command)

    try:
        code = asyncio.run(dispatch(TimesheetApp(config), args))
    except (TimesheetError, CommandFailed) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        code = 1
    except KeyboardInterrupt:
        code = 130
    sys.exit(code)


if __name__ == "__main__":
    run()
