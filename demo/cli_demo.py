#!/usr/bin/env python3
"""
Interactive CLI demo for the exercise matcher.

Type exercise names and see how they resolve against a JSON catalog.
Several names separated by ";" are matched as one batch.
"""
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

# Imports assume the package is installed (pip install -e .) or PYTHONPATH=src
from exercise_matcher.config_loader import load_config_from_env
from exercise_matcher.resolution import create_exercise_matcher

DEFAULT_CATALOG = os.path.join(os.path.dirname(__file__), "sample_catalog.json")


def print_banner(locale, threshold):
    """Print welcome banner."""
    print("\n" + "=" * 60)
    print("  Exercise Matcher - Interactive CLI Demo")
    print("=" * 60)
    print(f"\nLocale: {locale}   Threshold: {threshold}")
    print("Enter an exercise name, or several separated by ';'.")
    print("Commands: ':locale <code>', ':threshold <0-1>', ':reload', 'quit'")
    print("-" * 60 + "\n")


def print_result(result):
    """Print formatted match result."""
    if result.found:
        print(f"✅ {result.original_query!r} → {result.matched_name} "
              f"[{result.matched_id}] {result.confidence:.2f} ({result.match_method})")
    else:
        print(f"❌ {result.original_query!r} not found (best {result.confidence:.2f})")

    for suggestion in result.suggestions:
        print(f"     • {suggestion.name} [{suggestion.id}] {suggestion.confidence:.2f}")


async def run(matcher, locale, threshold):
    print_banner(locale, threshold)

    while True:
        try:
            line = input("🏋️  Exercise: ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break

        if not line:
            continue
        if line.lower() in ("quit", "exit"):
            break
        if line.startswith(":locale "):
            locale = line.split(maxsplit=1)[1]
            print(f"Locale set to {locale}")
            continue
        if line.startswith(":threshold "):
            try:
                value = float(line.split(maxsplit=1)[1])
            except ValueError:
                print("Threshold must be a number")
                continue
            if not 0.0 < value <= 1.0:
                print("Threshold must be greater than 0 and at most 1")
                continue
            threshold = value
            print(f"Threshold set to {threshold}")
            continue
        if line == ":reload":
            matcher.invalidate_cache()
            print("Caches cleared")
            continue

        names = [n.strip() for n in line.split(";") if n.strip()]
        if len(names) == 1:
            print_result(await matcher.match_one(names[0], locale, threshold))
        else:
            results = await matcher.match_batch(names, locale, threshold)
            for name in names:
                print_result(results[name])
        print("-" * 60)


def main():
    load_dotenv()
    os.environ.setdefault("EXERCISE_MATCHER_CATALOG_PATH", DEFAULT_CATALOG)

    config = load_config_from_env(load_env_file=False)
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    matcher = create_exercise_matcher(config)
    try:
        asyncio.run(run(matcher, config.default_locale, config.match_threshold))
    except FileNotFoundError as e:
        print(f"Catalog not found: {e}")
        return 1
    print("\n👋 Bye!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
