"""CLI entrypoint for geo_suggest."""

from __future__ import annotations

import argparse
import json

from geo_suggest.logging_config import setup_logging


def main() -> None:
    setup_logging()

    parser = argparse.ArgumentParser(prog="geo-suggest")
    parser.add_argument("--catalog", default=None, help="TSV path or URL (defaults to CATALOG_SOURCE)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("serve")
    sub.add_parser("stats")

    suggest_parser = sub.add_parser("suggest")
    suggest_parser.add_argument("q", nargs="?", help="free-text query (optional)")
    suggest_parser.add_argument("--lat", type=float)
    suggest_parser.add_argument("--lon", type=float)

    args = parser.parse_args()

    if args.command == "serve":
        _serve()
    elif args.command == "stats":
        _stats(args.catalog)
    elif args.command == "suggest":
        if (args.lat is None) != (args.lon is None):
            parser.error("--lat and --lon must be given together")
        _suggest(args.catalog, args.q, args.lat, args.lon)


def _serve() -> None:
    import uvicorn

    from geo_suggest.config import get_settings

    settings = get_settings()
    uvicorn.run(
        "geo_suggest.api:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=(settings.env == "development"),
        log_level=settings.log_level.lower(),
    )


def _loaded_service(catalog: str | None):
    from geo_suggest.suggest import SuggestionService

    service = SuggestionService(source=catalog)
    service.reload()
    return service


def _stats(catalog: str | None) -> None:
    service = _loaded_service(catalog)
    print(json.dumps(service.stats().model_dump(mode="json"), indent=2))


def _suggest(catalog: str | None, q: str | None, lat: float | None, lon: float | None) -> None:
    service = _loaded_service(catalog)
    results = service.get_suggestions(q, lat, lon)
    print(json.dumps([r.model_dump() for r in results], ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
