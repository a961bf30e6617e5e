#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Dict, List, Optional

import pandas as pd
from dotenv import load_dotenv

from .classifier import Classifier, UnavailableClassifier
from .config import Settings
from .content import HtmlContentProvider, page_from_dict
from .engine import GroupingEngine, GroupingResult
from .errors import GroupApplyError, NoContentError
from .providers import OpenAICompatibleClassifier
from .sink import GroupingSink, InMemoryGroupingSink, group_title
from .utils import configure_logging, ensure_dir, read_jsonl, write_jsonl


def build_engine(
    settings: Settings,
    sink: GroupingSink,
    no_ai: bool = False,
    progress: bool = True,
) -> GroupingEngine:
    if no_ai:
        classifier: Classifier = UnavailableClassifier()
    else:
        classifier = OpenAICompatibleClassifier(
            settings.api_key,
            model=settings.model,
            base_url=settings.base_url,
            timeout=settings.request_timeout,
            max_retries=settings.max_retries,
        )
    return GroupingEngine(
        classifier,
        provider=HtmlContentProvider(fetch=settings.fetch, timeout=settings.fetch_timeout),
        sink=sink,
        session_config=settings.classifier_config(),
        topic_timeout=settings.topic_timeout,
        accept_threshold=settings.accept_threshold,
        reject_threshold=settings.reject_threshold,
        progress=progress,
    )


def export(output_dir: str, result: GroupingResult, sink: InMemoryGroupingSink) -> None:
    ensure_dir(output_dir)
    items = result.items
    handle_group: Dict[int, str] = {}
    for cluster in result.clusters:
        title = group_title(cluster.name, cluster.size)
        for h in cluster.members:
            handle_group[id(h)] = title

    df = pd.DataFrame(
        {
            "id": [getattr(it.handle, "id", None) for it in items],
            "url": [it.url for it in items],
            "title": [it.title for it in items],
            "topic": [it.topic for it in items],
            "group": [handle_group.get(id(it.handle)) for it in items],
            "error": [it.error for it in items],
        },
        dtype=object,
    )

    out_pages = os.path.join(output_dir, "pages_with_topics.jsonl")
    out_groups = os.path.join(output_dir, "groups.json")

    logging.info("Writing %s", out_pages)
    write_jsonl(out_pages, (row.to_dict() for _, row in df.iterrows()))

    logging.info("Writing %s", out_groups)
    with open(out_groups, "w", encoding="utf-8") as f:
        json.dump(sink.snapshot(), f, ensure_ascii=False, indent=2)


def run(input_path: str, output_dir: str, settings: Settings, no_ai: bool = False) -> int:
    if not os.path.exists(input_path):
        logging.error("Input not found: %s", input_path)
        return 1
    pages = [page_from_dict(row) for row in read_jsonl(input_path)]
    sink = InMemoryGroupingSink()
    engine = build_engine(settings, sink, no_ai=no_ai)
    try:
        result = asyncio.run(engine.group(pages))
    except (NoContentError, GroupApplyError) as e:
        logging.error("Grouping failed: %s", e)
        return 1

    export(output_dir, result, sink)
    logging.info(
        "Done. %d pages in %d groups%s",
        len(result.items),
        result.created,
        " (domain fallback)" if result.used_fallback else "",
    )
    return 0


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    input_path = os.getenv("INPUT", "./pages.jsonl")
    output_dir = os.getenv("OUTPUT", "./out")
    model = os.getenv("TABGROUP_MODEL", "gpt-4o-mini")

    p = argparse.ArgumentParser(
        prog="tabgroup",
        description="Group open pages by topic",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("--input", default=input_path, help="pages .jsonl file, or a directory of .jsonl files")
    p.add_argument("--output", default=output_dir, help="output directory")
    p.add_argument("--model", default=model, help="chat model used for topic extraction")
    p.add_argument("--no_ai", action="store_true", help="skip the language model and group by domain")
    p.add_argument("--fetch", action="store_true", help="download pages that carry no HTML")
    p.add_argument("--log_level", default="INFO", help="DEBUG/INFO/WARNING/ERROR")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    configure_logging(args.log_level)
    settings = Settings.from_env()
    settings.model = args.model
    settings.fetch = settings.fetch or args.fetch
    return run(args.input, args.output, settings, no_ai=args.no_ai)


if __name__ == "__main__":
    sys.exit(main())
