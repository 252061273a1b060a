"""
Working example: one campaign run against the configured providers.

    python run_campaign.py https://www.eventnexus.eu --channel instagram --ratio 9:16

Needs GOOGLE_API_KEY plus at least one visual provider key in .env.
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)

sys.path.insert(0, str(Path(__file__).parent))

from campaigngen.config import config
from campaigngen.credits import get_credit_ledger
from campaigngen.pipeline import CampaignOrchestrator, CampaignRequest, PipelinePhase

if config.debug:
    logging.getLogger().setLevel(logging.DEBUG)

STEPS = [phase for phase in PipelinePhase if not phase.is_terminal]


def on_progress(phase: PipelinePhase):
    """Progress callback."""
    if phase.is_terminal:
        print(f"\n[{phase.value.upper()}]")
        return
    done = STEPS.index(phase) + 1
    bar = "=" * done + "-" * (len(STEPS) - done)
    print(f"\r[{bar}] {done}/{len(STEPS)} {phase.value}", end="", flush=True)


def parse_args():
    parser = argparse.ArgumentParser(description="Generate a narrated promotional video")
    parser.add_argument("subject", nargs="?", default="", help="Event id or URL (privileged runs default to the platform URL)")
    parser.add_argument("--channel", default="instagram")
    parser.add_argument("--ratio", default="9:16", choices=["16:9", "9:16", "1:1"])
    parser.add_argument("--account", default="demo-account")
    parser.add_argument("--tier", default="pro")
    parser.add_argument("--privileged", action="store_true", help="Skip credit metering")
    parser.add_argument("--top-up", type=int, default=0, help="Credits to add to the account first")
    return parser.parse_args()


async def main():
    """Run example campaign."""
    args = parse_args()
    config.log_status()

    if args.top_up:
        get_credit_ledger().add_credits(args.account, args.top_up)

    request = CampaignRequest(
        subject_ref=args.subject,
        channel=args.channel,
        aspect_ratio=args.ratio,
        account_id=args.account,
        account_tier=args.tier,
        is_privileged=args.privileged,
    )

    print("=" * 60)
    print("GENERATIVE CAMPAIGN PIPELINE")
    print("=" * 60)

    orchestrator = CampaignOrchestrator.from_config()
    try:
        result = await orchestrator.run(request, on_progress=on_progress)
    finally:
        await orchestrator.close()

    print("-" * 60)
    if result.ok:
        campaign = result.campaign
        print("SUCCESS!")
        print(f"Video: {campaign.video.path}")
        print(f"Scenes: {len(campaign.scenes)} ({campaign.failed_segment_count} failed)")
        print(f"Duration: {campaign.visual_duration:.1f}s, narration {campaign.audio_duration:.1f}s")
        print(f"Headline: {campaign.analysis.social_copy.headline}")
        for source in campaign.sources:
            print(f"Source: {source.title} - {source.uri}")
    else:
        print(f"FAILED [{result.error.code.value}]: {result.error.message}")

    return result


if __name__ == "__main__":
    asyncio.run(main())
