#!/usr/bin/env python3
"""
forgeguard CLI — Offline command-line interface to the trust & submission guard.

Commands:
    score     - Trust score for a credential list (JSON file)
    validate  - Sanitize and validate one credential (JSON file)
    scan      - Check a proof document and print its proof hash
    ratelimit - Show, record or reset persisted rate-limit state
    limits    - Check the credential ceiling for a count or batch
"""

import argparse
import asyncio
import json
import sys
from typing import Optional

from forgeguard.config import GuardConfig
from forgeguard.files import ProofFile, compute_proof_hash, scan_file_content, validate_file
from forgeguard.limits import CredentialLimitValidator
from forgeguard.log import setup_structured_logging
from forgeguard.rate_limiter import RateLimiter, format_time_until_allowed
from forgeguard.sanitizer import sanitize_credential_metadata, sanitize_json_input
from forgeguard.scoring import tier_description, trust_score_stats
from forgeguard.storage import FileBackend
from forgeguard.validation import validate_credential_metadata


def _output(data: dict, args: argparse.Namespace, human_fn=None):
    """Output data as JSON or pretty-printed."""
    if getattr(args, "json", False) or human_fn is None:
        print(json.dumps(data, indent=2, default=str))
    else:
        human_fn(data)


def _read_text(path: str) -> str:
    """Read a file, or stdin for "-"."""
    if path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8") as f:
        return f.read()


def _rate_limiter(config: GuardConfig) -> RateLimiter:
    return RateLimiter(
        FileBackend(config.resolved_storage_path),
        minute_limit=config.minute_limit,
        hour_limit=config.hour_limit,
    )


# ─── Commands ──────────────────────────────────────────────────────

def cmd_score(args, config: GuardConfig):
    """Compute the trust score for a list of credentials."""
    data = sanitize_json_input(_read_text(args.file))
    if isinstance(data, dict):
        data = data.get("credentials", [])
    stats = trust_score_stats(data)
    result = stats.to_dict()
    result["tier_description"] = tier_description(stats.trust_score.tier)

    def human(d):
        ts = d["trust_score"]
        print(f"Trust score: {ts['total']}/100 ({ts['tier']})")
        print(f"   {d['tier_description']}")
        print(f"   Reviews:  {ts['breakdown']['review_score']}")
        print(f"   Skills:   {ts['breakdown']['skill_score']}")
        print(f"   Payments: {ts['breakdown']['payment_score']}")
        counts = d["credential_counts"]
        print(f"   Credentials: {counts['total']} "
              f"(avg rating {d['average_rating']})")

    _output(result, args, human)
    return result


def cmd_validate(args, config: GuardConfig):
    """Sanitize then validate a single credential."""
    candidate = json.loads(_read_text(args.file))
    metadata = sanitize_credential_metadata(candidate) if isinstance(candidate, dict) else candidate
    validation = validate_credential_metadata(metadata)
    result = {"metadata": metadata, **validation.to_dict()}

    def human(d):
        if d["is_valid"]:
            print("✅ Credential metadata is valid")
            return
        print("❌ Credential metadata is invalid")
        for err in d["errors"]:
            print(f"   {err['field']}: {err['message']}")

    _output(result, args, human)
    return result


async def _scan(proof: ProofFile):
    scan = await scan_file_content(proof)
    if not scan.is_safe:
        return scan, None
    return scan, compute_proof_hash(await proof.read_bytes())


def cmd_scan(args, config: GuardConfig):
    """Run both file gates over a proof document."""
    proof = ProofFile.from_path(args.file, mime_type=args.mime)
    structural = validate_file(proof)
    result = {"file": proof.name, "mime_type": proof.mime_type, "size": proof.size,
              "is_valid": structural.is_valid, "error": structural.error,
              "is_safe": None, "proof_hash": None}

    if structural.is_valid:
        scan, proof_hash = asyncio.run(_scan(proof))
        result["is_safe"] = scan.is_safe
        result["error"] = scan.error
        result["proof_hash"] = proof_hash

    def human(d):
        if d["proof_hash"]:
            print(f"✅ Accepted: {d['file']} ({d['mime_type']}, {d['size']} bytes)")
            print(f"   Proof hash: {d['proof_hash']}")
        else:
            print(f"❌ Rejected: {d['file']}")
            print(f"   Reason: {d['error']}")

    _output(result, args, human)
    return result


def cmd_ratelimit(args, config: GuardConfig):
    """Inspect or update persisted rate-limit state."""
    limiter = _rate_limiter(config)
    if args.action == "record":
        limiter.record_action()
    elif args.action == "reset":
        limiter.reset()

    status = limiter.check_rate_limit()
    result = status.to_dict()
    result["warning"] = limiter.get_warning_message(status.minute_count, status.hour_count)
    result["minute_limit"] = limiter.minute_limit
    result["hour_limit"] = limiter.hour_limit

    def human(d):
        state = "allowed" if d["allowed"] else "blocked"
        print(f"Rate limit: {state}")
        print(f"   Last minute: {d['minute_count']}/{d['minute_limit']}")
        print(f"   Last hour:   {d['hour_count']}/{d['hour_limit']}")
        if d["next_allowed_time"]:
            print(f"   Try again in {format_time_until_allowed(d['next_allowed_time'])}")
        if d["warning"]:
            print(f"   ⚠️  {d['warning']}")

    _output(result, args, human)
    return result


def cmd_limits(args, config: GuardConfig):
    """Check the credential ceiling."""
    validator = CredentialLimitValidator(config.max_credentials)
    if args.batch:
        check = validator.check_batch_limit(args.count, args.batch)
    else:
        check = validator.check_credential_limit(args.count)
    result = check.to_dict()

    def human(d):
        print("✅ Allowed" if d["allowed"] else f"❌ {d['error']}")
        if d["warning"]:
            print(f"   ⚠️  {d['warning']}")

    _output(result, args, human)
    return result


# ─── Parser ────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="forgeguard",
        description="forgeguard — credential trust scoring and submission guard",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--json", action="store_true", help="Machine-readable JSON output")

    sub = parser.add_subparsers(dest="command", help="Available commands")

    p = sub.add_parser("score", help="Trust score for a credential list")
    p.add_argument("file", help="JSON list of credentials (- for stdin)")

    p = sub.add_parser("validate", help="Sanitize and validate a credential")
    p.add_argument("file", help="Credential metadata JSON file (- for stdin)")

    p = sub.add_parser("scan", help="Check a proof document")
    p.add_argument("file", help="Proof document path")
    p.add_argument("-m", "--mime", help="MIME type (guessed from the name if omitted)")

    p = sub.add_parser("ratelimit", help="Persisted rate-limit state")
    p.add_argument("action", nargs="?", default="status", choices=["status", "record", "reset"])

    p = sub.add_parser("limits", help="Credential ceiling check")
    p.add_argument("count", type=int, help="Credentials currently held")
    p.add_argument("-b", "--batch", type=int, default=0, help="Size of a planned batch import")

    return parser


def main(argv: Optional[list[str]] = None) -> Optional[dict]:
    """CLI entry point. Returns result dict for testing."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        "score": cmd_score,
        "validate": cmd_validate,
        "scan": cmd_scan,
        "ratelimit": cmd_ratelimit,
        "limits": cmd_limits,
    }

    try:
        config = GuardConfig.from_env()
        setup_structured_logging(config.log_level)
        return commands[args.command](args, config)
    except FileNotFoundError as e:
        print(f"❌ File not found: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
