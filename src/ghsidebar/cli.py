from __future__ import annotations

import argparse
import json
import logging
from typing import Any

from ghsidebar.config.loader import load_config
from ghsidebar.config.models import AppConfig
from ghsidebar.core.errors import AdapterError, AggregationError, ConfigError
from ghsidebar.engine.aggregator import Aggregator
from ghsidebar.engine.pr_details import fetch_prs_details, parse_pr_url
from ghsidebar.engine.sidebar import SidebarProvider
from ghsidebar.logging.setup import configure_logging
from ghsidebar.plugins.registry import build_adapter


def build_search_adapter(config: AppConfig) -> Any:
    return build_adapter(
        config.runtime.github_adapter,
        token=config.github.token,
        graphql_url=str(config.github.graphql_url),
        page_size=config.github.page_size,
        timeout=config.github.request_timeout,
    )


def build_rest_adapter(config: AppConfig) -> Any:
    return build_adapter(
        config.runtime.rest_adapter,
        token=config.github.token,
        api_base=str(config.github.api_base),
        timeout=config.github.request_timeout,
    )


def build_provider(config: AppConfig, search_adapter: Any) -> SidebarProvider:
    aggregator = Aggregator(
        search_adapter,
        org=config.github.org,
        batch=config.sidebar.batch_queries,
    )
    return SidebarProvider(
        aggregator,
        username=config.github.username,
        timeout=config.sidebar.aggregation_timeout,
    )


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="GitHub sidebar data for chat integrations")
    parser.add_argument("--config", required=True, help="Path to config YAML file")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("sidebar", help="Open PRs, review requests and assignments with counts")
    sub.add_parser("prs", help="List your open pull requests")
    sub.add_parser("reviews", help="List open pull requests awaiting your review")
    sub.add_parser("assignments", help="List open issues and PRs assigned to you")
    sub.add_parser("mentions", help="List open issues and PRs mentioning you")
    search_p = sub.add_parser("search", help="Search open issues by free text")
    search_p.add_argument("term", nargs="+", help="Search terms")
    details_p = sub.add_parser("pr-details", help="Review, reviewer and CI state for pull requests")
    details_p.add_argument("urls", nargs="+", help="Pull request URLs (https://github.com/owner/repo/pull/N)")

    args = parser.parse_args(argv)
    logger = logging.getLogger("CLI")
    adapters: list[Any] = []
    try:
        config = load_config(args.config)
        configure_logging(config.runtime.log_level)
        logger.info("Loaded configuration", extra={"command": args.command})

        if args.command == "pr-details":
            refs = []
            for url in args.urls:
                ref = parse_pr_url(url)
                if ref is None:
                    logger.error("Not a pull request URL: %s", url)
                    raise SystemExit(2)
                refs.append(ref)
            reader = build_rest_adapter(config)
            adapters.append(reader)
            details = fetch_prs_details(reader, refs, max_workers=config.sidebar.detail_concurrency)
            _print_json([detail.to_dict() for detail in details])
            return

        search_adapter = build_search_adapter(config)
        adapters.append(search_adapter)
        provider = build_provider(config, search_adapter)
        if args.command == "sidebar":
            _print_json(provider.get_sidebar_data_or_empty().to_dict())
        elif args.command == "prs":
            _print_json([item.to_dict() for item in provider.get_your_prs()])
        elif args.command == "reviews":
            _print_json([item.to_dict() for item in provider.get_reviews()])
        elif args.command == "assignments":
            _print_json([item.to_dict() for item in provider.get_your_assignments()])
        elif args.command == "mentions":
            _print_json([item.to_dict() for item in provider.get_mentions()])
        elif args.command == "search":
            _print_json([item.to_dict() for item in provider.search_issues(" ".join(args.term))])
    except (ConfigError, AdapterError) as exc:
        logger.error("Fatal error: %s", exc)
        raise SystemExit(1) from exc
    except AggregationError as exc:
        logger.error("GitHub search failed: %s", exc)
        raise SystemExit(1) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unhandled error")
        raise SystemExit(1) from exc
    finally:
        for adapter in adapters:
            close = getattr(adapter, "close", None)
            if callable(close):
                close()


def _print_json(value: Any) -> None:
    print(json.dumps(value, indent=2))


if __name__ == "__main__":
    main()
