from __future__ import annotations

import argparse
import asyncio
import logging
import math
import os
import stat
from pathlib import Path

from ._util import _now_local, _today_key
from .analytics import dashboard, format_amount, trends
from .catalog import BENZO_DATA, OTHER_ID, get_substance, label_for, unit_for
from .dateparse import parse_day
from .export import encode_csv, export_filename, write_csv
from .insight import InsightSession
from .models import DailyLog, TakenMedication
from .paths import DATA_ENV, assert_safe_data_path, resolve_data_path
from .repository import LogRepository
from .storage import JsonFileStore


# -------------------------
# Parsing helpers
# -------------------------

def _parse_amount(raw: str, what: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise SystemExit(f"{what} must be a number (got {raw!r})") from None
    if not math.isfinite(value) or value <= 0:
        raise SystemExit(f"{what} must be greater than 0 (got {raw!r})")
    return int(value) if value.is_integer() else value


def _parse_med(raw: str) -> TakenMedication:
    """
    Accepts:
      - "diazepam:10"
      - "diazepam:10:panic at work"  (third part is the reason)
      - "gabapentin:300"  (unknown substance -> logged as 'other' with that name)
    """
    parts = [p.strip() for p in raw.split(":", 2)]
    if len(parts) < 2 or not parts[0] or not parts[1]:
        raise SystemExit(f"--med must look like SUBSTANCE:AMOUNT (got {raw!r})")

    name, amount_s = parts[0], parts[1]
    reason = parts[2] if len(parts) == 3 and parts[2] else None
    amount = _parse_amount(amount_s, f"--med {name} amount")

    key = name.lower()
    if key == OTHER_ID:
        return TakenMedication(OTHER_ID, amount, custom_name="Other", reason=reason)
    if get_substance(key):
        return TakenMedication(key, amount, reason=reason)
    return TakenMedication(OTHER_ID, amount, custom_name=name, reason=reason)


def _parse_day_arg(value: str | None) -> str:
    try:
        return parse_day(value)
    except ValueError as e:
        raise SystemExit(str(e)) from None


def _parse_switch(value: str) -> bool:
    s = value.strip().lower()
    if s in ("on", "yes", "true", "1"):
        return True
    if s in ("off", "no", "false", "0"):
        return False
    raise SystemExit(f"expected on/off (got {value!r})")


# -------------------------
# Print blocks
# -------------------------

def _med_text(med: TakenMedication) -> str:
    text = f"{label_for(med.substance_id, med.custom_name)} {med.amount}{unit_for(med.substance_id)}"
    if med.reason:
        text += f" ({med.reason})"
    return text


def _print_log_block(log: DailyLog) -> None:
    print("```")
    print("📒 Daily Log")
    print(f"- 📅 Date: {log.date}")
    if log.alcohol_consumed:
        print(f"- 🍺 Alcohol: yes, {log.alcohol_units} units")
    else:
        print("- 💧 Alcohol: none")
    if log.medications:
        for med in log.medications:
            print(f"- 💊 {_med_text(med)}")
    else:
        print("- 💊 Medications: none")
    if log.mood is not None:
        print(f"- 🙂 Mood (1–10): {log.mood}")
    if log.notes:
        print(f"- 📝 Notes: {log.notes}")
    print(f"- 🔑 id: {log.id}")
    print("```")


def _log_line(log: DailyLog) -> str:
    meds = ", ".join(_med_text(m) for m in log.medications) or "no meds"
    alcohol = f"🍺 {log.alcohol_units}u" if log.alcohol_consumed else "sober"
    line = f"{log.date} — {alcohol} — {meds}"
    if log.mood is not None:
        line += f" — mood {log.mood}/10"
    if log.notes:
        line += f" ({log.notes})"
    return line


# -------------------------
# Shared plumbing
# -------------------------

def _repo(args: argparse.Namespace) -> LogRepository:
    return LogRepository(JsonFileStore(args.data_path))


def _require_writable(repo: LogRepository) -> None:
    if repo.get_settings().family_mode:
        print("🔒 Family mode is on: the journal is read-only.")
        raise SystemExit(2)


def _fetch_insight(logs: list[DailyLog]) -> str:
    session = InsightSession()
    asyncio.run(session.fetch(logs))
    return session.text


# -------------------------
# LOG commands
# -------------------------

def cmd_log(args: argparse.Namespace) -> None:
    repo = _repo(args)
    _require_writable(repo)

    day = _parse_day_arg(args.date)
    existing = repo.find_by_date(day)

    if args.mood is not None and not (1 <= args.mood <= 10):
        raise SystemExit("--mood must be between 1 and 10")

    new_meds = [_parse_med(m) for m in (args.med or [])]

    if existing and not args.replace:
        meds = list(existing.medications) + new_meds
        alcohol_consumed = existing.alcohol_consumed
        alcohol_units = existing.alcohol_units
        mood = existing.mood
        notes = existing.notes
    else:
        meds = new_meds
        alcohol_consumed, alcohol_units, mood, notes = False, 0, None, None

    if args.alcohol is not None:
        units = float(args.alcohol)
        if not math.isfinite(units) or units < 0:
            raise SystemExit("--alcohol must be a non-negative number of units")
        alcohol_consumed = units > 0
        alcohol_units = int(units) if units.is_integer() else units
    if args.mood is not None:
        mood = args.mood
    if args.notes is not None:
        notes = args.notes

    entry = DailyLog.create(
        day,
        id=existing.id if existing else None,
        alcohol_consumed=alcohol_consumed,
        alcohol_units=alcohol_units,
        medications=meds,
        notes=notes,
        mood=mood,
    )
    repo.upsert(entry)

    if args.format == "block":
        _print_log_block(entry)
    else:
        verb = "Updated" if existing else "Logged"
        print(f"📝 {verb}: {_log_line(entry)}")


def cmd_show(args: argparse.Namespace) -> None:
    repo = _repo(args)
    day = _parse_day_arg(args.date)
    log = repo.find_by_date(day)
    if not log:
        print(f"No entry for {day}.")
        return
    _print_log_block(log)


def cmd_list(args: argparse.Namespace) -> None:
    logs = _repo(args).list()
    if not logs:
        print("No journal entries yet.")
        return

    if args.format == "block":
        for log in logs[: args.limit]:
            _print_log_block(log)
        return

    print("=== Journal (newest first) ===")
    for log in logs[: args.limit]:
        print(_log_line(log))


def cmd_delete(args: argparse.Namespace) -> None:
    repo = _repo(args)
    _require_writable(repo)

    if args.id:
        log_id = args.id
    else:
        log = repo.find_by_date(_parse_day_arg(args.date))
        if not log:
            print("Nothing to delete.")
            return
        log_id = log.id

    before = len(repo.list())
    remaining = repo.remove(log_id)
    if len(remaining) == before:
        print(f"No entry with id {log_id!r}.")
    else:
        print(f"🗑️ Deleted {log_id} ({len(remaining)} entries left).")


def cmd_reset(args: argparse.Namespace) -> None:
    repo = _repo(args)
    _require_writable(repo)
    if not args.yes:
        raise SystemExit("Refusing to reset without --yes (this deletes the whole journal).")

    before = len(repo.list())
    repo.clear()
    print(f"🧹 Journal reset: deleted {before} entries.")


def cmd_seed(args: argparse.Namespace) -> None:
    repo = _repo(args)
    if repo.list():
        print("Journal already has entries; not seeding.")
        return
    logs = repo.seed_demo(days=args.days)
    print(f"🌱 Seeded {len(logs)} demo entries.")


# -------------------------
# ANALYSIS commands
# -------------------------

def cmd_summary(args: argparse.Namespace) -> None:
    repo = _repo(args)
    settings = repo.get_settings()
    logs = repo.list()
    dash = dashboard(logs)

    print("====================")
    print(f"SoberStats — {settings.name}")
    print("====================\n")

    if settings.family_mode:
        print("🔒 RESTRICTED VIEWING MODE ACTIVE\n")

    print("[INSIGHT]")
    if args.insight:
        print(f"> {_fetch_insight(logs)}\n")
    else:
        print("> (run with --insight to request one)\n")

    print("[STATUS]")
    print(f"- daily log: {dash.status}")
    print(f"- sober streak: {dash.sober_streak} days")
    top = dash.primary_load
    if top:
        print(f"- top load (7-entry avg): {top.label} {top.display_average}{top.unit}/day")
    else:
        print(f"- top load (7-entry avg): {format_amount(dash.primary_load_average, 1)}")

    if dash.mood:
        m = dash.mood
        print(f"- mood (last {m.entries}): avg {m.average:.2f}/10, range {m.low}–{m.high}  {m.sparkline}")

    print("\n[LOAD – last 7 entries]")
    if dash.loads:
        for load in dash.loads:
            print(f"- {load.label}: {load.display_average}{load.unit}/day")
    else:
        print("No medications logged.")

    print("\n[TRENDS – this week vs last]")
    _print_trends(dash.trends)


def _print_trends(items) -> None:
    if not items:
        print("Not enough data for trends.")
        return
    for t in items:
        print(
            f"- {t.substance.short_name}: {t.display_previous} → {t.display_current}"
            f"{t.substance.unit} {t.direction.arrow} {t.direction.value}"
        )


def cmd_trends(args: argparse.Namespace) -> None:
    logs = _repo(args).list()
    print("=== Substance trends (entries 1–7 vs 8–14) ===")
    _print_trends(trends(logs))


def cmd_insight(args: argparse.Namespace) -> None:
    print(f"> {_fetch_insight(_repo(args).list())}")


def cmd_export(args: argparse.Namespace) -> None:
    logs = _repo(args).list()
    if args.csv == "-":
        print(encode_csv(logs), end="")
        return

    out = Path(args.csv or export_filename(_now_local().date())).expanduser().resolve()
    write_csv(out, logs)
    if logs:
        print(f"📄 Exported {len(logs)} rows → {out}")
    else:
        print(f"📄 Exported header-only CSV (no entries) → {out}")


def cmd_catalog(args: argparse.Namespace) -> None:
    print("=== Substance reference ===")
    for ref in BENZO_DATA:
        equiv = f"{ref.potency_equivalence:g}mg diazepam" if ref.potency_equivalence else "—"
        print(f"- {ref.id:<18} {ref.display_name:<28} t½ {ref.half_life_hours:>7}h  ≈ {equiv}")


# -------------------------
# Settings + core commands
# -------------------------

def cmd_settings(args: argparse.Namespace) -> None:
    repo = _repo(args)
    changes: dict[str, object] = {}
    if args.name is not None:
        changes["name"] = args.name.strip() or "User"
    if args.family_mode is not None:
        changes["family_mode"] = _parse_switch(args.family_mode)
    if args.theme is not None:
        changes["theme"] = args.theme
    if args.set_password is not None:
        if not args.set_password.strip():
            raise SystemExit("--set-password must not be blank")
        changes["password"] = args.set_password
    if args.remove_password:
        changes["password"] = None

    if changes:
        current = repo.get_settings()
        if not current.check_password(args.password or ""):
            print("🔒 Settings are password protected: pass the current one with --password.")
            raise SystemExit(2)

    settings = repo.update_settings(**changes) if changes else repo.get_settings()

    print("=== Settings ===")
    print(f"- name: {settings.name}")
    print(f"- family mode: {'on (read-only)' if settings.family_mode else 'off'}")
    print(f"- theme: {settings.theme}")
    print(f"- password: {'set' if settings.locked else 'not set'}")


def cmd_init(args: argparse.Namespace) -> None:
    repo = _repo(args)
    repo.save_settings(repo.get_settings())
    print(f"✅ Initialized data file: {args.data_path}")


def cmd_where(args: argparse.Namespace) -> None:
    env = os.environ.get(DATA_ENV)
    if args.data_arg:
        reason = "because you passed --data"
    elif env:
        reason = f"because {DATA_ENV} is set"
    elif args.profile:
        reason = f"because you used --profile {args.profile!r}"
    else:
        reason = "default XDG config location"

    print(args.data_path)
    print(f"↳ using {reason}")


def cmd_doctor(args: argparse.Namespace) -> None:
    print("=== SoberStats Doctor ===")

    assert_safe_data_path(args.data_path, args.allow_repo_data_path)
    print("✅ Data path safety guard: OK")

    stored = JsonFileStore(args.data_path).read_all()
    print(f"✅ JSON readable: OK ({len(stored)} keys)")

    repo = _repo(args)
    print(f"📒 Entries: {len(repo.list())} (today logged: {'yes' if repo.find_by_date(_today_key()) else 'no'})")

    try:
        mode = args.data_path.stat().st_mode
        perms = stat.S_IMODE(mode)
        print(f"🔐 File permissions: {oct(perms)} (target 0o600)")
    except FileNotFoundError:
        print("⚠️ Data file missing (run `soberstats init`)")

    print("=== Done ===")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="soberstats", description="SoberStats recovery journal")
    p.add_argument("--data", default=None, help="Path to data JSON (overrides env/default)")
    p.add_argument("--profile", default=None, help="Profile name (e.g. dev/test)")
    p.add_argument("--allow-repo-data-path", action="store_true", help="Override safety guard (not recommended)")
    p.add_argument("-v", "--verbose", action="store_true", help="Log what the journal is doing")

    sub = p.add_subparsers(dest="cmd", required=True)
    sub.add_parser("init", help="Initialize data store safely").set_defaults(func=cmd_init)
    sub.add_parser("where", help="Show which data file is active and why").set_defaults(func=cmd_where)
    sub.add_parser("doctor", help="Run safety + health checks").set_defaults(func=cmd_doctor)
    sub.add_parser("catalog", help="Show the substance reference table").set_defaults(func=cmd_catalog)

    log = sub.add_parser("log", help="Create or update the entry for a day")
    log.add_argument("--date", default=None, help="YYYY-MM-DD, 'yesterday', '3 days ago' (default today)")
    log.add_argument("--med", action="append", metavar="SUBSTANCE:AMOUNT[:REASON]",
                     help="Dose taken, e.g. diazepam:10 (repeatable)")
    log.add_argument("--alcohol", default=None, type=float, metavar="UNITS",
                     help="Alcohol units consumed (0 = none)")
    log.add_argument("--mood", type=int, default=None, help="Mood score 1–10")
    log.add_argument("--notes", default=None)
    log.add_argument("--replace", action="store_true",
                     help="Replace the day's entry instead of adding to it")
    log.add_argument("--format", choices=["line", "block"], default="line")
    log.set_defaults(func=cmd_log)

    show = sub.add_parser("show", help="Show the entry for a day")
    show.add_argument("--date", default=None)
    show.set_defaults(func=cmd_show)

    lst = sub.add_parser("list", help="List journal entries")
    lst.add_argument("--limit", type=int, default=50)
    lst.add_argument("--format", choices=["line", "block"], default="line")
    lst.set_defaults(func=cmd_list)

    delete = sub.add_parser("delete", help="Delete one entry")
    target = delete.add_mutually_exclusive_group(required=True)
    target.add_argument("--id", default=None)
    target.add_argument("--date", default=None)
    delete.set_defaults(func=cmd_delete)

    summary = sub.add_parser("summary", help="Show dashboard")
    summary.add_argument("--insight", action="store_true", help="Request an AI insight (needs ANTHROPIC_API_KEY)")
    summary.set_defaults(func=cmd_summary)

    sub.add_parser("trends", help="Week-over-week substance trends").set_defaults(func=cmd_trends)
    sub.add_parser("insight", help="Request an AI insight for the journal").set_defaults(func=cmd_insight)

    export = sub.add_parser("export", help="Export the journal to CSV")
    export.add_argument("--csv", default=None,
                        help="Output path, or '-' for stdout (default soberstats-export-<date>.csv)")
    export.set_defaults(func=cmd_export)

    settings = sub.add_parser("settings", help="Show or change settings")
    settings.add_argument("--name", default=None)
    settings.add_argument("--family-mode", dest="family_mode", default=None, metavar="on|off")
    settings.add_argument("--theme", default=None)
    pw = settings.add_mutually_exclusive_group()
    pw.add_argument("--set-password", dest="set_password", default=None)
    pw.add_argument("--remove-password", dest="remove_password", action="store_true")
    settings.add_argument("--password", default=None, help="Current password, required to change a protected journal")
    settings.set_defaults(func=cmd_settings)

    reset = sub.add_parser("reset", help="Delete ALL journal entries (requires --yes)")
    reset.add_argument("--yes", action="store_true", help="Confirm destructive reset")
    reset.set_defaults(func=cmd_reset)

    seed = sub.add_parser("seed", help="Fill an empty journal with demo data")
    seed.add_argument("--days", type=int, default=30)
    seed.set_defaults(func=cmd_seed)

    return p


def main(argv=None) -> None:
    p = build_parser()
    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    args.data_arg = args.data
    args.data_path = resolve_data_path(args.data, args.profile)

    assert_safe_data_path(args.data_path, args.allow_repo_data_path)
    args.func(args)


if __name__ == "__main__":
    main()
