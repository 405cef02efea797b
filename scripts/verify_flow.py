"""
Manual end-to-end check against a running backend.

Creates a session, attaches one Mongolian listener over SSE, submits an interim
and a final utterance as the teacher, and prints what the listener receives.

    BASE_URL=http://localhost:8000 python scripts/verify_flow.py

Needs httpx, which comes with the test extra (pip install -e ".[test]").
"""
import asyncio
import json
import logging
import os

import httpx

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

BASE_URL = os.getenv("BASE_URL", "http://localhost:8000")
LISTEN_SECONDS = float(os.getenv("LISTEN_SECONDS", "20"))


async def listen(session_id, locale, events):
    url = f"{BASE_URL}/api/broadcast/stream"
    params = {"sessionId": session_id, "locale": locale}
    async with httpx.AsyncClient(timeout=None) as client:
        async with client.stream("GET", url, params=params) as resp:
            async for line in resp.aiter_lines():
                if line.startswith(":"):
                    logger.info(f"[{locale}] heartbeat")
                    continue
                if not line.startswith("data: "):
                    continue
                data = json.loads(line[len("data: "):])
                logger.info(f"[{locale}] {data}")
                await events.put(data)


async def run_scenario():
    async with httpx.AsyncClient() as client:
        resp = await client.post(f"{BASE_URL}/api/broadcast", json={"action": "create"})
        resp.raise_for_status()
        session_id = resp.json()["sessionId"]
        logger.info(f"Created session {session_id}")

        events = asyncio.Queue()
        listener = asyncio.create_task(listen(session_id, "mn", events))
        await asyncio.sleep(1)

        await client.post(
            f"{BASE_URL}/api/broadcast",
            json={"sessionId": session_id, "text": "안녕", "interim": True},
        )
        await client.post(
            f"{BASE_URL}/api/broadcast",
            json={"sessionId": session_id, "text": "안녕하세요"},
        )

        kinds = []
        try:
            while len(kinds) < 4:
                data = await asyncio.wait_for(events.get(), timeout=LISTEN_SECONDS)
                if data["type"] == "connected":
                    kinds.append("connected")
                elif data["interim"]:
                    kinds.append("interim")
                else:
                    kinds.append("provisional" if data["provisional"] else "final")
        except asyncio.TimeoutError:
            logger.error(f"Timed out; received so far: {kinds}")
        finally:
            listener.cancel()

        logger.info(f"Listener saw: {kinds}")

        poll = await client.get(
            f"{BASE_URL}/api/broadcast", params={"sessionId": session_id, "locale": "mn"}
        )
        logger.info(f"History: {poll.json()}")

        await client.post(f"{BASE_URL}/api/broadcast", json={"action": "end", "sessionId": session_id})
        logger.info("Session ended")


if __name__ == "__main__":
    asyncio.run(run_scenario())
