#!/usr/bin/env python3
"""
Confirmation race against the Stagebook API.
N artists apply to the same date slot, then N admins confirm N different
applications at once. Exactly one confirmation may succeed.
"""

import asyncio
import aiohttp
import time
from datetime import date, timedelta

API_URL = "http://localhost:8000"
CONCURRENT_CONFIRMATIONS = 50

class ConfirmRace:
    def __init__(self):
        self.results = {
            "confirmed": 0,
            "already_booked": 0,
            "other_errors": 0,
            "errors": 0,
            "response_times": []
        }
        self.slot_id = None
        self.application_ids = []

    async def create_slot(self, session: aiohttp.ClientSession):
        """Create a multi-date program and one date slot a month from now."""
        async with session.post(f"{API_URL}/api/v1/programs", json={
            "title": f"Stress Test {int(time.time())}",
            "program_type": "MULTI_DATES",
            "status": "ACTIVE",
            "conditions": {"fee_cents": 20000, "is_net": True},
        }) as resp:
            if resp.status != 201:
                return
            program_id = (await resp.json())["id"]

        day = (date.today() + timedelta(days=30)).isoformat()
        async with session.post(f"{API_URL}/api/v1/programs/{program_id}/dates", json={"date": day}) as resp:
            if resp.status == 201:
                self.slot_id = (await resp.json())["id"]
                print(f"✓ Created slot {self.slot_id} on {day}")

    async def apply(self, session: aiohttp.ClientSession, artist_num: int):
        async with session.post(f"{API_URL}/api/v1/slots/{self.slot_id}/applications", json={
            "artist_id": f"stress-artist-{artist_num}",
        }) as resp:
            if resp.status == 201:
                return (await resp.json())["id"]
        return None

    async def confirm(self, session: aiohttp.ClientSession, application_id: int):
        """Attempt to confirm one application."""
        start = time.time()

        try:
            async with session.post(f"{API_URL}/api/v1/slots/{self.slot_id}/confirm",
                json={"application_id": application_id}
            ) as resp:
                elapsed = (time.time() - start) * 1000
                self.results["response_times"].append(elapsed)

                if resp.status == 201:
                    self.results["confirmed"] += 1
                    print(f"✓ Application {application_id} confirmed ({elapsed:.0f}ms)")
                elif resp.status == 409 and (await resp.json())["error"]["code"] == "AlreadyBooked":
                    self.results["already_booked"] += 1
                    print(f"✗ Application {application_id} lost the race ({elapsed:.0f}ms)")
                else:
                    self.results["other_errors"] += 1
                    print(f"✗ Application {application_id} failed: {resp.status} ({elapsed:.0f}ms)")
        except aiohttp.ClientError as e:
            self.results["errors"] += 1
            print(f"✗ Application {application_id} error: {e}")

    async def run(self):
        """Execute the race."""
        print(f"\n{'='*60}")
        print(f"CONFIRM RACE: {CONCURRENT_CONFIRMATIONS} confirmations → 1 slot")
        print(f"{'='*60}\n")

        async with aiohttp.ClientSession() as session:
            print("Phase 1: Creating program and slot...")
            await self.create_slot(session)
            if not self.slot_id:
                print("✗ Failed to create slot")
                return
            print()

            print("Phase 2: Collecting applications...")
            ids = await asyncio.gather(*(self.apply(session, i) for i in range(CONCURRENT_CONFIRMATIONS)))
            self.application_ids = [i for i in ids if i]
            print(f"✓ {len(self.application_ids)} applications\n")

            print(f"Phase 3: {len(self.application_ids)} confirmations simultaneously...")
            print("-" * 60)
            start_time = time.time()

            await asyncio.gather(*(self.confirm(session, i) for i in self.application_ids))

            total_time = time.time() - start_time

            print("\n" + "="*60)
            print("RESULTS")
            print("="*60)
            print(f"Total time:          {total_time:.2f}s")
            print(f"Confirmed:           {self.results['confirmed']}")
            print(f"AlreadyBooked (409): {self.results['already_booked']}")
            print(f"Other failures:      {self.results['other_errors']}")
            print(f"Errors:              {self.results['errors']}")

            if self.results["response_times"]:
                times = sorted(self.results["response_times"])
                print(f"\nResponse times:")
                print(f"  Avg: {sum(times)/len(times):.0f}ms")
                print(f"  P50: {times[len(times)//2]:.0f}ms")
                print(f"  P95: {times[int(len(times)*0.95)]:.0f}ms")

            print("\n" + "="*60)
            if self.results["confirmed"] == 1:
                print("✓ PASS: exactly one booking for the slot")
            else:
                print(f"✗ FAIL: {self.results['confirmed']} bookings for one slot")
            print("="*60 + "\n")

if __name__ == "__main__":
    asyncio.run(ConfirmRace().run())
