import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv
load_dotenv()

from matcher import run_match
from models import MatchSettings, ProgressEvent
from services import (Store, OpenAIEmbeddings, OpenAIGenerator, fetch_trends, load_videos, ingest_videos,
    write_recommendations, format_recommendation, get_youtube_title_suggestions, extract_search_topic)
from services.output import OUTPUT_PATH


def print_event(event: ProgressEvent):
    print(event.message)


async def cmd_ingest(store: Store, args) -> int:
    videos = load_videos(args.path)
    report = await ingest_videos(store, OpenAIEmbeddings(), videos, force=args.force,
                                 fetch_missing_transcripts=args.fetch_transcripts)
    print(f"Ingestion complete: {report.processed} processed, {report.skipped} skipped "
          f"({report.chunks} chunks) of {report.total}")
    return 0

async def cmd_trends(store: Store, args) -> int:
    trends = await fetch_trends(store, max_trends=args.max)
    for t in trends:
        print(f"  + {t.title}")
    print(f"Fetched {len(trends)} unique trending topics")
    return 0

async def cmd_match(store: Store, args) -> int:
    settings = MatchSettings.from_env()
    result = await run_match(
        store,
        OpenAIEmbeddings(),
        OpenAIGenerator(temperature=settings.temperature),
        trend_ids=args.trend_ids or None,
        settings=settings,
        sink=print_event,
    )
    if not args.no_output:
        cmd_output(store, args)
    print(f"Summary: {result.total_evaluations} evaluated, {result.accepted} accepted, {result.rejected} rejected")
    return 0

def cmd_output(store: Store, args) -> int:
    outputs = write_recommendations(store, args.out)
    if not outputs:
        print("No recommendations found.")
        return 0
    print(f"Wrote {len(outputs)} recommendations to {args.out}\n")
    print("TOP 5 RECOMMENDATIONS:\n")
    for i, item in enumerate(outputs[:5], start=1):
        print(format_recommendation(i, item))
        print()
    return 0

async def cmd_suggest(store: Store, args) -> int:
    trend = store.get_trend(args.trend_id)
    if not trend:
        print(f"Trend not found: {args.trend_id}")
        return 1
    settings = MatchSettings.from_env()
    query = await extract_search_topic(OpenAIGenerator(temperature=settings.temperature), trend.title)
    for s in get_youtube_title_suggestions(query, max_results=args.max):
        print(f"{s.views:>12,}  {s.title}  ({s.channel_title})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="reindexer", description="Match trending topics to existing videos.")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("ingest", help="Ingest videos and generate embeddings")
    p.add_argument("path", nargs="?", default="./data/videos.json", help=".csv or .json file")
    p.add_argument("--force", action="store_true", help="reprocess videos that already exist")
    p.add_argument("--fetch-transcripts", action="store_true", help="fetch missing transcripts from YouTube")

    p = sub.add_parser("trends", help="Fetch trending topics")
    p.add_argument("--max", type=int, default=20)

    p = sub.add_parser("match", help="Match trends to videos and write output")
    p.add_argument("trend_ids", nargs="*", help="limit the run to these trend ids")
    p.add_argument("--out", default=OUTPUT_PATH)
    p.add_argument("--no-output", action="store_true")

    p = sub.add_parser("output", help="Write stored recommendations to JSON")
    p.add_argument("--out", default=OUTPUT_PATH)

    p = sub.add_parser("suggest", help="YouTube title suggestions for a trend")
    p.add_argument("trend_id")
    p.add_argument("--max", type=int, default=10)
    return parser


async def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    store = Store()
    store.init_db()
    if args.command == "output":
        return cmd_output(store, args)
    handlers = {"ingest": cmd_ingest, "trends": cmd_trends, "match": cmd_match, "suggest": cmd_suggest}
    return await handlers[args.command](store, args)


def cli():
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
