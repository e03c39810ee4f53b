"""
Bulk Upload Script
Reads every .txt file in a knowledge-base folder, splits it into paragraph
chunks and embeds them, either through a local pipeline or a running service.

Run:
    python upload_docs.py docs/knowledge-base --dry-run
    python upload_docs.py docs/knowledge-base
    python upload_docs.py docs/knowledge-base --url http://localhost:8000
"""

import argparse
import logging
import sys
from typing import Dict, List

import requests

from src.chatbot.chunker import chunk_text
from src.chatbot.errors import ChatbotError
from src.chatbot.loaders import load_folder

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("upload_docs")


def build_plan(folder: str) -> Dict[str, List[dict]]:
    """Return {file name: [{content, source}]} for every readable document."""
    plan = {}
    for name, text in load_folder(folder).items():
        try:
            chunks = chunk_text(text, name)
        except ChatbotError as e:
            logger.warning(f"Skipping {name}: {e}")
            continue
        logger.info(f"Split {name} into {len(chunks)} chunks")
        plan[name] = [{"content": c.content, "source": c.source_label} for c in chunks]
    return plan


def upload_remote(url: str, plan: Dict[str, List[dict]], timeout: float) -> int:
    embedded = 0
    for name, texts in plan.items():
        response = requests.post(
            f"{url.rstrip('/')}/embed",
            json={"texts": texts, "filename": name},
            timeout=timeout
        )
        body = response.json()
        if response.status_code != 200:
            logger.error(f"{name}: {response.status_code} {body.get('error')}")
            continue
        logger.info(f"{name}: embedded {body['embedded']}/{body['total']}")
        embedded += body["embedded"]
    return embedded


def upload_local(plan: Dict[str, List[dict]]) -> int:
    from src.chatbot import RAGPipeline

    pipeline = RAGPipeline()
    embedded = 0
    for name, texts in plan.items():
        try:
            outcome = pipeline.ingest_texts(texts, name)
        except ChatbotError as e:
            logger.error(f"{name}: {e}")
            continue
        logger.info(f"{name}: embedded {outcome.embedded}/{outcome.total}")
        embedded += outcome.embedded
    return embedded


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Upload a folder of .txt documents")
    parser.add_argument("folder", help="Folder containing .txt documents")
    parser.add_argument("--url", help="Base URL of a running chatbot service")
    parser.add_argument("--timeout", type=float, default=120.0,
                        help="HTTP timeout per document in seconds")
    parser.add_argument("--dry-run", action="store_true",
                        help="Only print the chunk plan")
    args = parser.parse_args(argv)

    plan = build_plan(args.folder)
    total = sum(len(texts) for texts in plan.values())
    logger.info(f"Total chunks to upload: {total}")

    if args.dry_run:
        for name, texts in plan.items():
            print(f"{name}: {len(texts)} chunks")
            for item in texts:
                print(f"  {item['source']}: {item['content'][:60]}...")
        return 0

    if not plan:
        logger.error("Nothing to upload")
        return 1

    if args.url:
        embedded = upload_remote(args.url, plan, args.timeout)
    else:
        embedded = upload_local(plan)

    logger.info(f"Successfully embedded {embedded}/{total} chunks")
    return 0 if embedded else 1


if __name__ == "__main__":
    sys.exit(main())
