from __future__ import annotations

import argparse
import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Sequence

import httpx


def _utc_now_compact() -> str:
    return datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Upload a star catalog to the backend, run one route search and save a summary."
    )
    parser.add_argument("--stars-json", required=True)
    parser.add_argument("--origin", required=True)
    parser.add_argument("--destination", required=True)
    parser.add_argument("--upper-bound", type=float, required=True)
    parser.add_argument("--lower-bound", type=float, default=0.0)
    parser.add_argument("--number-paths", type=int, default=3)
    parser.add_argument("--exclude-spectral", action="append", default=[])
    parser.add_argument("--exclude-polity", action="append", default=[])
    parser.add_argument("--backend-url", default="http://localhost:8000")
    parser.add_argument("--save-dir", default="out/headless")
    parser.add_argument("--summary-path", default=None)
    return parser


def load_catalog(path: str) -> dict[str, Any]:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(payload, list):
        payload = {"stars": payload}
    if not isinstance(payload, dict) or not isinstance(payload.get("stars"), list):
        raise ValueError("catalog JSON must be a list of stars or an object with 'stars'")
    if not payload["stars"]:
        raise ValueError("catalog JSON contains zero stars")
    return payload


def build_query(args: argparse.Namespace) -> dict[str, Any]:
    return {
        "origin": args.origin,
        "destination": args.destination,
        "upper_bound": args.upper_bound,
        "lower_bound": args.lower_bound,
        "number_paths": args.number_paths,
        "star_exclusions": list(args.exclude_spectral),
        "polity_exclusions": list(args.exclude_polity),
    }


def execute_headless_search(
    catalog: dict[str, Any],
    query: dict[str, Any],
    *,
    backend_url: str,
    save_dir: str,
    summary_path: str | None = None,
    client: httpx.Client | None = None,
) -> dict[str, Any]:
    base = backend_url.rstrip("/")
    own_client = client is None
    if client is None:
        client = httpx.Client(timeout=90.0)

    try:
        load_resp = client.put(f"{base}/stars", json=catalog)
        load_resp.raise_for_status()

        find_resp = client.post(f"{base}/routes/find", json=query)
        if find_resp.status_code == 422:
            detail = find_resp.json().get("detail", {})
            routes: list[dict[str, Any]] = []
            error = detail if isinstance(detail, dict) else {"message": str(detail)}
        else:
            find_resp.raise_for_status()
            routes = find_resp.json()["routes"]
            error = None

        stats_resp = client.get(f"{base}/cache/stats")
        stats_resp.raise_for_status()

        summary = {
            "timestamp": datetime.now(UTC).isoformat(),
            "star_count": load_resp.json()["star_count"],
            "origin": query["origin"],
            "destination": query["destination"],
            "success": error is None,
            "error": error,
            "route_count": len(routes),
            "routes": [
                {
                    "rank": r["rank"],
                    "path": r["path"],
                    "total_length": r["total_length"],
                    "number_of_segments": r["number_of_segments"],
                }
                for r in routes
            ],
            "cache": stats_resp.json(),
        }

        summary_file = (
            Path(summary_path)
            if summary_path
            else Path(save_dir) / f"route_summary_{_utc_now_compact()}.json"
        )
        summary_file.parent.mkdir(parents=True, exist_ok=True)
        summary_file.write_text(json.dumps(summary, indent=2), encoding="utf-8")
        summary["summary_file"] = str(summary_file)
        return summary
    finally:
        if own_client and client is not None:
            client.close()


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(list(argv) if argv is not None else None)
    summary = execute_headless_search(
        load_catalog(args.stars_json),
        build_query(args),
        backend_url=args.backend_url,
        save_dir=args.save_dir,
        summary_path=args.summary_path,
    )
    print(json.dumps(summary, indent=2))
    return 0 if summary["success"] else 1


if __name__ == "__main__":
    raise SystemExit(main())
