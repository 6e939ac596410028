#!/usr/bin/env python3
"""Quick verification script against the live ClawMemory API.

Run this from your venv after installing with: pip install -e .

Requires CLAWMEMORY_API_KEY (read from the environment or .env). The
script stores one memory, exercises every endpoint on it, and deletes it.
"""

import os
import sys
import time

from dotenv import load_dotenv

from clawmemory.plugins.memory.client import ClawMemoryClient, RemoteError
from clawmemory.plugins.memory.config_loader import ConfigurationError, load_config
from clawmemory.plugins.memory.models import MemoryType, type_label


def check_live_api():
    """Walk through store, get, update, list, recall and delete."""
    print("Checking ClawMemory API...")
    print("=" * 60)

    config = load_config({"agentId": os.environ.get("CLAWMEMORY_AGENT_ID") or "live-check"})
    client = ClawMemoryClient(
        config.api_key,
        agent_id=config.agent_id,
        base_url=config.base_url,
        timeout=config.timeout or 30,
    )
    print(f"✓ Client ready for {config.base_url} (agent: {client.agent_id})")

    marker = f"live-check-{int(time.time())}"
    content = f"The user prefers dark mode in every editor ({marker})"

    memory_id = client.store(content, MemoryType.PREFERENCE, 0.8, ["live-check"])
    print(f"✓ Stored: {memory_id}")
    assert memory_id, "store returned no id"

    try:
        memory = client.get(memory_id)
        print(f"✓ Get: [{type_label(memory.type)}] {memory.content}")
        assert memory.content == content

        assert client.update(memory_id, importance=0.95)
        print("✓ Update: importance -> 0.95")

        memories = client.list(limit=10)
        print(f"✓ List: {len(memories)} memories")

        recalled = client.recall("which editor theme does the user like", 5, 0.0)
        print(f"✓ Recall: {len(recalled)} matches")
        for m in recalled:
            print(f"    [{type_label(m.type)}] {m.content} ({m.relevance_percent}%)")
    finally:
        deleted = client.delete(memory_id)
        print(f"✓ Delete: {deleted}")

    bad_client = ClawMemoryClient("cm_invalid_key_for_live_check", base_url=config.base_url, timeout=30)
    try:
        bad_client.recall("anything")
    except RemoteError as e:
        print(f"✓ Invalid key rejected: HTTP {e.status}")
    else:
        raise AssertionError("invalid key was accepted")

    print("=" * 60)
    print("✅ All checks passed!")
    return True


if __name__ == "__main__":
    load_dotenv()
    try:
        check_live_api()
    except ConfigurationError as e:
        print(f"\n❌ {e}\nSet CLAWMEMORY_API_KEY to run this check.")
        sys.exit(2)
    except Exception as e:
        print(f"\n❌ Check failed: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)
