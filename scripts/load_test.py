"""Load test: hammer discovery and swipes for a set of seeded profiles.

Seeds synthetic profiles directly in the database, then drives the HTTP API:
one discovery call per profile, random swipes, and a burst of concurrent
reciprocal likes that must each settle on exactly one match.
Usage: python -m scripts.load_test [--count 100] [--base-url http://localhost:8000]
"""
import argparse
import asyncio
import random
import statistics
import sys
import time
from typing import Any

import httpx

sys.path.insert(0, ".")

from nearmatch.database import async_session_factory, engine  # noqa: E402
from nearmatch.models import Profile  # noqa: E402
from scripts.seed_profiles import _sample_profile, _synthetic  # noqa: E402


DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_COUNT = 100
DEFAULT_PAIRS = 20


async def seed_profiles(count: int) -> list[str]:
    """Insert ``count`` synthetic profiles and return their ids."""
    ids = []
    async with async_session_factory() as session:
        for i in range(count):
            data = _sample_profile(_synthetic(i))
            data["display_name"] = f"Load Test {i} {random.randint(0, 1_000_000)}"
            profile = Profile(**data)
            session.add(profile)
            await session.flush()
            ids.append(str(profile.id))
        await session.commit()
    await engine.dispose()
    return ids


async def discover(client: httpx.AsyncClient, base_url: str, profile_id: str) -> dict[str, Any] | None:
    try:
        resp = await client.get(f"{base_url}/api/v1/discovery/{profile_id}", params={"limit": 20})
        if resp.status_code == 200:
            return resp.json()
        print(f"  [WARN] Discovery {profile_id[:8]}: status {resp.status_code}")
        return None
    except Exception as e:
        print(f"  [ERROR] Discovery {profile_id[:8]}: {e}")
        return None


async def swipe(
    client: httpx.AsyncClient,
    base_url: str,
    seeker_id: str,
    target_id: str,
    action: str,
) -> httpx.Response | None:
    try:
        return await client.post(
            f"{base_url}/api/v1/swipes",
            json={"seeker_id": seeker_id, "target_id": target_id, "action": action},
        )
    except Exception as e:
        print(f"  [ERROR] Swipe {seeker_id[:8]}->{target_id[:8]}: {e}")
        return None


async def run_load_test(base_url: str, count: int, pairs: int) -> dict[str, Any]:
    """Run the full load test pipeline."""
    print(f"\n{'='*60}")
    print(f"NearMatch Load Test — {count} profiles")
    print(f"Target: {base_url}")
    print(f"{'='*60}\n")

    results = {
        "total": count,
        "discoveries_ok": 0,
        "needs_location": 0,
        "swipes_ok": 0,
        "swipe_conflicts": 0,
        "race_pairs": 0,
        "race_pairs_consistent": 0,
        "errors": [],
        "timings": {"discovery": [], "swipe": []},
    }

    print(f"[1/4] Seeding {count} profiles...")
    profile_ids = await seed_profiles(count)
    print(f"  -> {len(profile_ids)} profiles seeded\n")

    async with httpx.AsyncClient(timeout=30.0) as client:
        # Phase 2: discovery for every profile
        print(f"[2/4] Running discovery for {len(profile_ids)} profiles...")
        feeds: dict[str, list[str]] = {}
        for i, pid in enumerate(profile_ids):
            t0 = time.monotonic()
            body = await discover(client, base_url, pid)
            results["timings"]["discovery"].append(time.monotonic() - t0)
            if body is None:
                continue
            results["discoveries_ok"] += 1
            if body["status"] == "needs_location":
                results["needs_location"] += 1
            feeds[pid] = [c["id"] for c in body["candidates"]]
            if (i + 1) % 20 == 0:
                print(f"  Discovered {i + 1}/{len(profile_ids)}")
        print(f"  -> {results['discoveries_ok']} feeds returned\n")

        # Phase 3: swipe through each feed
        print("[3/4] Swiping through feeds...")
        for pid, candidates in feeds.items():
            for cid in candidates[:5]:
                t0 = time.monotonic()
                resp = await swipe(client, base_url, pid, cid, random.choice(["like", "dislike"]))
                results["timings"]["swipe"].append(time.monotonic() - t0)
                if resp is None:
                    continue
                if resp.status_code == 200:
                    results["swipes_ok"] += 1
                elif resp.status_code == 409:
                    results["swipe_conflicts"] += 1
                else:
                    results["errors"].append(f"Swipe {pid[:8]}->{cid[:8]}: {resp.status_code}")
        print(f"  -> {results['swipes_ok']} swipes recorded\n")

        # Phase 4: concurrent reciprocal likes on fresh pairs
        fresh = await seed_profiles(pairs * 2)
        print(f"[4/4] Racing {pairs} reciprocal like pairs...")
        for a, b in zip(fresh[::2], fresh[1::2]):
            results["race_pairs"] += 1
            first, second = await asyncio.gather(
                swipe(client, base_url, a, b, "like"),
                swipe(client, base_url, b, a, "like"),
            )
            if first is None or second is None:
                continue
            match_ids = {
                r.json()["match"]["match_id"]
                for r in (first, second)
                if r.status_code == 200 and r.json()["is_match"]
            }
            if len(match_ids) == 1:
                results["race_pairs_consistent"] += 1
            else:
                results["errors"].append(f"Race {a[:8]}x{b[:8]}: {len(match_ids)} match ids")
        print(f"  -> {results['race_pairs_consistent']}/{results['race_pairs']} settled on one match\n")

    # Summary
    print(f"{'='*60}")
    print("LOAD TEST RESULTS")
    print(f"{'='*60}")
    print(f"Discovery calls OK: {results['discoveries_ok']}/{count}")
    print(f"Needs location:     {results['needs_location']}")
    print(f"Swipes recorded:    {results['swipes_ok']} ({results['swipe_conflicts']} conflicts)")
    print(f"Race pairs OK:      {results['race_pairs_consistent']}/{results['race_pairs']}")

    for phase, timings in results["timings"].items():
        if timings:
            print(f"\n{phase} latency:")
            print(f"  mean:   {statistics.mean(timings):.3f}s")
            print(f"  median: {statistics.median(timings):.3f}s")
            print(f"  p95:    {sorted(timings)[int(len(timings)*0.95)]:.3f}s")
            print(f"  max:    {max(timings):.3f}s")

    if results["errors"]:
        print(f"\nErrors ({len(results['errors'])}):")
        for e in results["errors"][:10]:
            print(f"  - {e}")

    print(f"\n{'='*60}\n")
    return results


def main():
    parser = argparse.ArgumentParser(description="NearMatch Load Test")
    parser.add_argument("--count", type=int, default=DEFAULT_COUNT, help="Number of profiles to seed")
    parser.add_argument("--pairs", type=int, default=DEFAULT_PAIRS, help="Reciprocal like races to run")
    parser.add_argument("--base-url", type=str, default=DEFAULT_BASE_URL, help="API base URL")
    args = parser.parse_args()

    results = asyncio.run(run_load_test(args.base_url, args.count, args.pairs))

    # Exit with error if anything raced badly or discovery mostly failed
    success_rate = results["discoveries_ok"] / max(results["total"], 1)
    if results["race_pairs_consistent"] < results["race_pairs"]:
        print("FAIL: reciprocal like races produced inconsistent matches")
        sys.exit(1)
    if success_rate < 0.8:
        print(f"FAIL: Only {success_rate:.0%} success rate (target: 80%)")
        sys.exit(1)
    print(f"PASS: {success_rate:.0%} success rate")


if __name__ == "__main__":
    main()
