from __future__ import annotations

import argparse
import sys
from typing import Any


def _dump(obj: Any) -> str:
    from bams.kernel.hashing import canonical_json

    return canonical_json(obj)


def _emit(obj: Any) -> None:
    sys.stdout.write(_dump(obj) + "\n")
    sys.stdout.flush()


def _emit_stderr(text: str) -> None:
    # Human output should not break machine pipelines.
    sys.stderr.write(text.rstrip("\n") + "\n")
    sys.stderr.flush()


def _safe_cli_log(cfg: Any, *, action: str, outcome: str, details: dict[str, Any]) -> None:
    try:
        from bams.assurance.logging import append_jsonl_log_event

        append_jsonl_log_event(cfg=cfg, action=action, outcome=outcome, details=details)
    except Exception:  # pragma: no cover - best-effort logging
        # CLI success/failure must not depend on logging availability.
        pass


def _validation_human_summary(report: dict[str, Any]) -> str:
    status = "PASS" if report.get("overall") else "FAIL"
    lines = [f"Ledger validation ({report.get('anchor_mode')}): {status}"]
    for group in ("departments", "classes", "students"):
        results = report.get(group) or []
        failed = [result for result in results if not result.get("valid")]
        lines.append(f"- {group}: {len(results) - len(failed)}/{len(results)} valid")
        for result in failed:
            lines.append(f"  - {result.get('id')}: {result.get('reason')}")
    return "\n".join(lines)


def _add_entity_commands(sub: Any, kind: str) -> None:
    parser = sub.add_parser(kind, help=f"{kind.capitalize()} operations")
    kind_sub = parser.add_subparsers(dest="entity_command", required=True)

    create = kind_sub.add_parser("create", help=f"Create a {kind} and its genesis block")
    create.add_argument("name")
    create.add_argument("--id", dest="entity_id", default=None, help="Explicit identifier")
    if kind == "class":
        create.add_argument("--dept", dest="dept_id", required=True, help="Owning department id")
    if kind == "student":
        create.add_argument("--roll-no", dest="roll_no", required=True)
        create.add_argument("--class", dest="class_id", required=True, help="Owning class id")
        create.add_argument("--dept", dest="dept_id", default=None, help="Owning department id (checked)")

    if kind == "student":
        update = kind_sub.add_parser("update", help="Record a name/roll number change")
        update.add_argument("id")
        update.add_argument("--name", default=None)
        update.add_argument("--roll-no", dest="roll_no", default=None)
    else:
        rename = kind_sub.add_parser("rename", help=f"Record a {kind} rename")
        rename.add_argument("id")
        rename.add_argument("name")

    delete = kind_sub.add_parser("delete", help="Append a tombstone block")
    delete.add_argument("id")

    show = kind_sub.add_parser("show", help=f"Print the stored {kind} record")
    show.add_argument("id")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bams", description="Tamper-evident attendance ledger")
    sub = parser.add_subparsers(dest="command", required=True)

    seed_parser = sub.add_parser("seed", help="Populate an empty store with default data")
    seed_parser.add_argument("--classes", type=int, default=5, help="Classes per department")
    seed_parser.add_argument("--students", type=int, default=35, help="Students per class")

    for kind in ("department", "class", "student"):
        _add_entity_commands(sub, kind)

    attendance_parser = sub.add_parser("attendance", help="Attendance events")
    attendance_sub = attendance_parser.add_subparsers(dest="attendance_command", required=True)
    mark = attendance_sub.add_parser("mark", help="Append an attendance block to a student's chain")
    mark.add_argument("student_id")
    mark.add_argument("status", help="Present or Absent")
    mark.add_argument("--date", default=None, help="YYYY-MM-DD, defaults to today (UTC)")
    history = attendance_sub.add_parser("history", help="List a student's attendance blocks")
    history.add_argument("student_id")

    chain_parser = sub.add_parser("chain", help="Single-chain operations")
    chain_sub = chain_parser.add_subparsers(dest="chain_command", required=True)
    verify = chain_sub.add_parser("verify", help="Verify one entity's chain")
    verify.add_argument("kind", choices=("department", "class", "student"))
    verify.add_argument("id")

    validate_parser = sub.add_parser("validate", help="Validate every chain and anchor")
    validate_parser.add_argument(
        "--anchor-mode",
        choices=("snapshot", "live"),
        default=None,
        help="Override the configured anchor validation mode",
    )
    validate_parser.add_argument(
        "--output",
        choices=("json", "text", "both"),
        default="json",
        help="json emits machine output to stdout; text emits a summary to stderr; both emits both.",
    )

    sub.add_parser("health", help="Check that storage directories are usable")
    sub.add_parser("version", help="Show version information")

    return parser


def _run_entity_command(registry: Any, args: argparse.Namespace) -> dict[str, Any]:
    from bams.provenance.entities import EntityKind

    kind = EntityKind(args.command)
    action = args.entity_command

    if action == "create":
        if kind is EntityKind.DEPARTMENT:
            entity = registry.create_department(args.name, entity_id=args.entity_id)
        elif kind is EntityKind.CLASS:
            entity = registry.create_class(args.name, args.dept_id, entity_id=args.entity_id)
        else:
            entity = registry.create_student(
                args.name, args.roll_no, args.class_id, args.dept_id, entity_id=args.entity_id
            )
    elif action == "rename":
        entity = registry.rename(kind, args.id, args.name)
    elif action == "update":
        entity = registry.update_student(args.id, name=args.name, roll_no=args.roll_no)
    elif action == "delete":
        entity = registry.delete(kind, args.id)
    else:
        entity = registry.get(kind, args.id)
    return {"ok": True, kind.value: entity.to_dict()}


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    cfg: Any = None

    try:
        from bams.config import load_config

        cfg = load_config()

        if args.command == "version":
            from bams import __version__

            _emit(
                {
                    "ok": True,
                    "package_version": __version__,
                    "python": sys.version.split()[0],
                    "difficulty": cfg.difficulty,
                    "anchor_mode": cfg.anchor_mode.value,
                }
            )
            return 0

        if args.command == "health":
            from bams.runtime.health import check_storage

            details = check_storage(cfg=cfg)
            _safe_cli_log(cfg, action="health", outcome="ok" if details["ok"] else "error", details=details)
            _emit({"ok": details["ok"], "details": details})
            return 0 if details["ok"] else 1

        from bams.provenance.registry import LedgerRegistry
        from bams.provenance.store import JsonStore

        registry = LedgerRegistry(JsonStore(cfg), cfg)

        if args.command == "seed":
            counts = registry.seed_defaults(
                classes_per_department=args.classes, students_per_class=args.students
            )
            _safe_cli_log(cfg, action="seed", outcome="ok", details={"counts": counts})
            _emit({"ok": True, "counts": counts})
            return 0

        if args.command in ("department", "class", "student"):
            payload = _run_entity_command(registry, args)
            _safe_cli_log(
                cfg,
                action=f"{args.command}_{args.entity_command}",
                outcome="ok",
                details={"id": payload[args.command]["id"]},
            )
            _emit(payload)
            return 0

        if args.command == "attendance":
            if args.attendance_command == "mark":
                block, student = registry.mark_attendance(args.student_id, args.status, args.date)
                _safe_cli_log(
                    cfg,
                    action="attendance_mark",
                    outcome="ok",
                    details={"student_id": student.id, "hash": block.hash},
                )
                _emit({"ok": True, "block": block.to_dict(), "student": student.to_dict()})
                return 0
            blocks = registry.attendance_history(args.student_id)
            _emit({"ok": True, "count": len(blocks)})
            for block in blocks:
                sys.stdout.write(_dump(block.to_dict()) + "\n")
            return 0

        if args.command == "chain":
            from bams.provenance.entities import EntityKind

            check = registry.check_chain(EntityKind(args.kind), args.id)
            _safe_cli_log(cfg, action="chain_verify", outcome="ok" if check.ok else "error", details=check.to_dict())
            _emit({"ok": check.ok, "valid": check.ok, "check": check.to_dict()})
            return 0 if check.ok else 1

        if args.command == "validate":
            from bams.config import AnchorMode

            mode = AnchorMode(args.anchor_mode) if args.anchor_mode else None
            report = registry.validate(mode=mode).to_dict()
            outcome = "ok" if report["overall"] else "error"
            _safe_cli_log(cfg, action="validate", outcome=outcome, details={"overall": report["overall"]})
            if args.output in ("json", "both"):
                _emit({"ok": report["overall"], "report": report})
            if args.output in ("text", "both"):
                _emit_stderr(_validation_human_summary(report))
            return 0 if report["overall"] else 1

        raise ValueError(f"Unknown command: {args.command}")
    except Exception as exc:  # pragma: no cover - CLI safety net
        from bams.kernel.failures import LedgerError, NotFoundError

        code = exc.code if isinstance(exc, LedgerError) else None
        if cfg is not None:
            _safe_cli_log(cfg, action=args.command, outcome="error", details={"error": str(exc), "code": code})
        _emit({"ok": False, "error": str(exc), "code": code})
        return 2 if isinstance(exc, NotFoundError) else 1


__all__ = ["main"]
