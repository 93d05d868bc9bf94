"""ContentScope - competitor content analysis

Simple CLI for generating a master outline from a keyword or a list of URLs.
"""

import argparse
import asyncio

from app.api.deps import build_outline_orchestrator, build_review_service, get_llm, get_store
from app.config import settings
from app.errors import ContentScopeError
from app.models.schemas import OutlineRequest


async def run_outline(
    keyword: str | None,
    engine: str,
    urls: list[str],
    user_id: str | None = None,
) -> int:
    """Run the outline pipeline and print its progress."""
    request = OutlineRequest(
        keyword=keyword,
        search_engine=engine,
        manual_urls=urls or None,
        is_manual_mode=bool(urls),
        user_id=user_id,
    )
    print(f"Keyword: {keyword or '(manual URLs)'}")
    print("-" * 50)

    try:
        orchestrator = build_outline_orchestrator(settings, get_llm(), get_store())
        async for event in orchestrator.run(request):
            event_type = event.event.value
            data = event.data

            if event_type == "stage_changed" and data.get("stage") not in ("done", "failed"):
                print(f"[~] {data['stage']} ({data['progress']}%)")

            elif event_type == "search_result":
                results = data.get("results", [])
                print(f"  [+] {len(results)} results from {data.get('provider')}")
                for r in results:
                    print(f"      {r.get('position')}. {r.get('title', '')[:70]}")

            elif event_type == "analysis_completed":
                print(f"  [+] analyzed {data.get('link')}")

            elif event_type == "outline_complete":
                print(f"\n[*] Outline complete (saved: {data.get('saved')})")
                print(f"\n{'='*50}")
                print("OUTLINE:")
                print(f"{'='*50}")
                print(data.get("outline", ""))
    except ContentScopeError as e:
        print(f"\n[!] Error: {e}")
        if e.manual_fallback:
            print("    Search is unavailable. Retry with competitor pages: --url https://... --url https://...")
        return 1
    return 0


async def run_reviews(keyword: str, location: str | None) -> int:
    try:
        service = build_review_service(settings, get_llm(), get_store())
    except ContentScopeError as e:
        print(f"[!] Error: {e}")
        return 1
    response = await service.analyze(keyword, location)
    print(response.message or "")
    for review in response.reviews:
        tags = " / ".join(t for t in (review.category, review.message_type, review.topic) if t)
        print(f"- [{review.business_name}] {review.rating or '-'}* {tags or 'untagged'}")
        print(f"    {review.review_text[:120]}")
    return 0 if response.success else 1


def main():
    parser = argparse.ArgumentParser(description="ContentScope competitor analysis")
    parser.add_argument("--keyword", "-k", help="Keyword to research")
    parser.add_argument("--engine", "-e", choices=["duckduckgo", "google"], default="duckduckgo")
    parser.add_argument("--url", "-u", action="append", default=[], help="Competitor URL (repeatable, enables manual mode)")
    parser.add_argument("--user-id", help="User id for plan checks on the google engine")
    parser.add_argument("--reviews", action="store_true", help="Tag Google Maps reviews instead of building an outline")
    parser.add_argument("--location", "-l", help="Location for --reviews")

    args = parser.parse_args()
    if not args.keyword and not args.url:
        parser.error("one of --keyword or --url is required")

    if args.reviews:
        raise SystemExit(asyncio.run(run_reviews(args.keyword or "", args.location)))
    raise SystemExit(asyncio.run(run_outline(args.keyword, args.engine, args.url, args.user_id)))


if __name__ == "__main__":
    main()
