"""CLI entrypoint: blog creation, topic generation and single-source scraping."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Dict, List, Optional

from rich.markup import escape

from config import get_settings
from intelligence import ContentPipeline
from models import BlogFormat, SourcePlatform
from outputs import export_json, render_blog_markdown
from scrapers import create_scraper
from utils import console, configure_logging
from utils.exceptions import ContentBotError


_SOURCE_CHOICES = {platform.value: platform for platform in SourcePlatform}


def _print_json(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


def _counts_summary(result) -> Dict[str, Any]:
    return {
        "counts": result.bundle.summary(),
        "skipped": {platform.value: reason for platform, reason in result.bundle.skipped.items()},
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="ContentBot: research-backed blog posts and topic ideas")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR (default: LOG_LEVEL or INFO)")
    sub = parser.add_subparsers(dest="command", required=True)

    blog = sub.add_parser("create-blog", help="Generate a blog post about a topic")
    blog.add_argument("--topic", "-t", required=True)
    blog.add_argument("--output", "-o", default="./output/blog-post.md")
    blog.add_argument("--model", "-m", default=None)
    blog.add_argument("--news", "-n", type=int, default=3, help="Bing News articles (0-5)")
    blog.add_argument("--tavily", type=int, default=0, help="Tavily news articles (0-5)")
    blog.add_argument("--reddit", "-r", type=int, default=0, help="Reddit posts (0-25)")
    blog.add_argument("--youtube", "-y", type=int, default=0, help="YouTube videos (0-50)")
    blog.add_argument("--substack", type=int, default=0, help="Substack posts (0-25)")
    blog.add_argument("--subreddit", "-s", default=None)
    blog.add_argument("--audience", "-a", default="general")
    blog.add_argument("--keywords", "-k", default=None, help="Comma-separated SEO keywords, primary first")
    blog.add_argument("--front-matter", action="store_true", help="Emit YAML front matter instead of section markers")
    blog.add_argument("--no-write", action="store_true", help="Print the post instead of writing files")

    topics = sub.add_parser("generate-topics", help="Generate blog topic ideas for a category")
    topics.add_argument("--category", "-c", required=True)
    topics.add_argument("--count", "-n", type=int, default=5)
    topics.add_argument("--output", "-o", default="./output/topic-ideas.json")
    topics.add_argument("--model", "-m", default=None)
    topics.add_argument("--bing", "-b", type=int, default=3, help="Bing News articles (0-5)")
    topics.add_argument("--tavily", "-t", type=int, default=3, help="Tavily news articles (0-5)")
    topics.add_argument("--reddit", "-r", type=int, default=0, help="Reddit posts (0-25)")
    topics.add_argument("--youtube", "-y", type=int, default=0, help="YouTube videos (0-50)")
    topics.add_argument("--substack", type=int, default=0, help="Substack posts (0-25)")
    topics.add_argument("--audience", "-a", default="general")
    topics.add_argument("--keywords", "-k", default=None, help="Comma-separated keywords, primary first")
    topics.add_argument("--no-write", action="store_true", help="Print the JSON instead of writing files")

    scrape = sub.add_parser("scrape", help="Fetch research items from a single source")
    scrape.add_argument("source", choices=sorted(_SOURCE_CHOICES))
    scrape.add_argument("--query", "-q", required=True)
    scrape.add_argument("--max", "-m", type=int, default=5)
    scrape.add_argument("--output", "-o", default=None)
    scrape.add_argument("--subreddit", default=None, help="reddit: restrict to a subreddit")
    scrape.add_argument("--sort", default=None, help="reddit: relevance/hot/new/top; substack: recent/top/oldest")
    scrape.add_argument("--time", dest="time_filter", default=None, help="reddit: hour/day/week/month/year/all")
    scrape.add_argument("--order", default=None, help="youtube: relevance/date/rating/viewCount/title")
    scrape.add_argument("--publication", default=None, help="substack: publication subdomain")
    scrape.add_argument("--discover", action="store_true", help="substack: discover a publication for the query")

    return parser


async def _create_blog(args: argparse.Namespace) -> None:
    counts = {
        SourcePlatform.NEWS_SEARCH_A: args.news,
        SourcePlatform.NEWS_SEARCH_B: args.tavily,
        SourcePlatform.FORUM: args.reddit,
        SourcePlatform.VIDEO: args.youtube,
        SourcePlatform.NEWSLETTER: args.substack,
    }
    options = {SourcePlatform.FORUM: {"subreddit": args.subreddit}} if args.subreddit else None
    blog_format = BlogFormat.FRONT_MATTER if args.front_matter else BlogFormat.SECTIONS

    async with ContentPipeline(show_progress=True) as pipeline:
        result = await pipeline.create_blog(
            args.topic,
            counts,
            audience=args.audience,
            keywords=args.keywords,
            model=args.model,
            output_path=None if args.no_write else args.output,
            source_options=options,
            blog_format=blog_format,
        )

    if args.no_write:
        print(render_blog_markdown(result.document, fallback_title=args.topic, front_matter=args.front_matter))
        return
    _print_json({
        "output_path": str(result.output_path),
        "title": result.document.title,
        "tags": result.document.tags,
        **_counts_summary(result),
        "audit": {name: str(path) for name, path in result.audit.items()},
    })


async def _generate_topics(args: argparse.Namespace) -> None:
    counts = {
        SourcePlatform.NEWS_SEARCH_A: args.bing,
        SourcePlatform.NEWS_SEARCH_B: args.tavily,
        SourcePlatform.FORUM: args.reddit,
        SourcePlatform.VIDEO: args.youtube,
        SourcePlatform.NEWSLETTER: args.substack,
    }
    async with ContentPipeline(show_progress=True) as pipeline:
        result = await pipeline.generate_topics(
            args.category,
            counts,
            count=args.count,
            audience=args.audience,
            keywords=args.keywords,
            model=args.model,
            output_path=None if args.no_write else args.output,
        )

    if args.no_write:
        _print_json(result.topics.to_dict())
        return
    if result.topics.degraded:
        console.print(f"[yellow]Topic response could not be parsed: {escape(result.topics.error)}[/yellow]")
    _print_json({
        "output_path": str(result.output_path),
        "topics": len(result.topics.topics),
        **_counts_summary(result),
        "audit": {name: str(path) for name, path in result.audit.items()},
    })


def _scrape_options(args: argparse.Namespace, platform: SourcePlatform) -> Dict[str, Any]:
    if platform == SourcePlatform.FORUM:
        return {"subreddit": args.subreddit, "sort": args.sort, "time_filter": args.time_filter}
    if platform == SourcePlatform.VIDEO:
        return {"order": args.order}
    if platform == SourcePlatform.NEWSLETTER:
        return {"publication": args.publication, "sort": args.sort, "discover": args.discover}
    return {}


async def _scrape(args: argparse.Namespace) -> None:
    platform = _SOURCE_CHOICES[args.source]
    async with create_scraper(platform, settings=get_settings()) as scraper:
        items = await scraper.fetch(args.query, args.max, **_scrape_options(args, platform))
        skip_reason = scraper.last_skip_reason

    payload: Dict[str, Any] = {
        "source": platform.value,
        "query": args.query,
        "count": len(items),
        "items": [item.model_dump(mode="json") for item in items],
    }
    if skip_reason:
        payload["skipped"] = skip_reason

    if args.output:
        path = export_json(args.output, payload)
        _print_json({"output_path": str(path), "count": len(items)})
    else:
        _print_json(payload)


_COMMANDS = {
    "create-blog": _create_blog,
    "generate-topics": _generate_topics,
    "scrape": _scrape,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        asyncio.run(_COMMANDS[args.command](args))
    except ContentBotError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(exc.message)}")
        return 1
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted[/yellow]")
        return 130
    return 0


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
