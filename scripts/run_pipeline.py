import argparse
from dataclasses import replace
import sys
import os
from pathlib import Path

# Add backend to path
sys.path.append(os.path.join(os.path.dirname(__file__), '../backend'))

from outfit_compositor.core.config import CompositorConfig
from outfit_compositor.core.errors import CompositorError
from outfit_compositor.services.compositor import OutfitCompositor

REPO_ROOT = Path(__file__).resolve().parents[1]
FIXTURES_DIR = REPO_ROOT / "scripts" / "fixtures"
ARTIFACTS_DIR = REPO_ROOT / "artifacts" / "poc_output"

def run_pipeline(items: dict) -> int:
    print(f"Compositing {len(items)} items: {sorted(items)}")

    config = CompositorConfig.from_env()
    compositor = OutfitCompositor(replace(config, cache_root=ARTIFACTS_DIR))
    try:
        result = compositor.compose(items)
    except CompositorError as exc:
        print(f"Error: {exc.user_message} ({exc})")
        return 1

    print(f"Drawn: {result.drawn}, skipped: {result.skipped}")
    for failure in result.failures:
        print(f"  skipped {failure.category}: {failure.reason}")
    print(f"Saved composite to {result.path}")
    return 0

def main() -> int:
    parser = argparse.ArgumentParser(description="Composite outfit item photos into one silhouette PNG.")
    parser.add_argument(
        "items",
        nargs="*",
        help="category=path pairs, e.g. top=shirt.png bottom=jeans.jpg (defaults to scripts/fixtures)",
    )
    args = parser.parse_args()

    if args.items:
        items = dict(pair.split("=", 1) for pair in args.items)
    else:
        if not (FIXTURES_DIR / "top.png").exists():
            print("Error: Test assets not found. Run scripts/create_test_assets.py first.")
            return 1
        items = {
            "top": str(FIXTURES_DIR / "top.png"),
            "bottom": str(FIXTURES_DIR / "bottom.png"),
            "shoes": str(FIXTURES_DIR / "shoes.jpg"),
        }
    return run_pipeline(items)

if __name__ == "__main__":
    sys.exit(main())
