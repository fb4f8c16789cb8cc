"""
Quick sanity check that ingestion and retrieval work end to end.

Uses the scripted generator and the token-hashing embedder, so no model
server is needed.

Usage:
    python quick_check.py
"""

import logging

from chat_memory import Memory, Settings
from chat_memory.embeddings.base import MockEmbedder
from chat_memory.generation.generator import MockGenerator
from chat_memory.memory.retrieval import format_memory_context
from chat_memory.vectorstores.in_memory import InMemoryVectorStore

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

generator = MockGenerator({
    "Extract key memories": "- User's name is Alice\n- User likes pizza\n- User works as a nurse",
})
embedder = MockEmbedder(dimension=384)
memory = Memory(
    store=InMemoryVectorStore(dimension=384),
    generator=generator,
    embedder=embedder,
    settings=Settings(),
)

conversations = [
    [{"role": "user", "content": "Hi, I'm Alice. I love pizza and I work as a nurse."}],
    # Same facts again: every candidate should be skipped as a duplicate
    [{"role": "user", "content": "As I said, I'm Alice, a nurse who likes pizza."}],
]

for i, messages in enumerate(conversations, start=1):
    print(f"Conversation {i}")
    for event in memory.add(messages, owner_id="alice"):
        print(f"  {event.action.value:<6} {event.content}")
    print("-" * 80)

queries = [
    "pizza",
    "Tell me about myself",
    "What food do I like?",
]

for query in queries:
    results = memory.search(query, owner_id="alice")
    print(f"Query: {query}")
    for record in results:
        print(f"  {record.score:.3f}  {record.content}")
    print(format_memory_context(results))
    print("-" * 80)

print(f"Stored memories: {len(memory.get_all('alice'))}")
