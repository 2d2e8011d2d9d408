"""
Main entry point for Semantic Word Bubbles.
Lays out one bubble per distinct word of a text, grouped by meaning.
"""

import argparse
import json
import sys
import time

from assets import AssetLoadError, WordAssets
from config import (
    ASSET_CONFIG,
    CLUSTERING_CONFIG,
    FONT_CONFIG,
    OUTPUT_CONFIG,
    RADIUS_CONFIG,
)
from embedding import VocabularyLookupError
from text_extractor import INPUT_TYPES, extract_text
from word_bubbles import WordBubbles


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Semantic Word Bubbles - lay out words by meaning and frequency",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Lay out the words of a text file and print a table
  python main.py --input speech.txt \\
      --embeddings word2vec/embeddings.npy --vocabulary vocabulary.json

  # Three groups, larger bubbles, JSON to stdout
  python main.py --input speech.txt --clusters 3 --min-radius 10 --max-radius 60 --json

  # Fit font sizes and save the layout
  python main.py --input book.pdf --pdf-pages 1 20 --fit-fonts --output bubbles.json
""",
    )

    # Input options
    input_group = parser.add_argument_group("Input Options")
    input_group.add_argument(
        "--input", "-i", type=str, help="Input file path or text string"
    )
    input_group.add_argument(
        "--input-type",
        "-t",
        type=str,
        choices=INPUT_TYPES,
        help="Input type (auto-detected if not specified)",
    )
    input_group.add_argument(
        "--pdf-pages",
        nargs=2,
        type=int,
        metavar=("START", "END"),
        help="Page range for PDF extraction",
    )

    # Asset options
    asset_group = parser.add_argument_group("Asset Options")
    asset_group.add_argument(
        "--embeddings", type=str, help="Embedding matrix (.npy/.npz)"
    )
    asset_group.add_argument("--vocabulary", type=str, help="Vocabulary JSON file")
    asset_group.add_argument(
        "--lemmas", type=str, help="Lemma table (surface<TAB>base)"
    )
    asset_group.add_argument(
        "--transpose-embeddings",
        action="store_true",
        help="Embedding matrix is stored as [dimensions, words]",
    )

    # Layout options
    layout_group = parser.add_argument_group("Layout Options")
    layout_group.add_argument(
        "--clusters",
        "-k",
        type=int,
        default=CLUSTERING_CONFIG["default_clusters"],
        help="Number of groups (0-10)",
    )
    layout_group.add_argument(
        "--min-radius", type=float, default=RADIUS_CONFIG["min_radius"]
    )
    layout_group.add_argument(
        "--max-radius", type=float, default=RADIUS_CONFIG["max_radius"]
    )
    layout_group.add_argument("--seed", type=int, help="Random seed for the layout")

    # Font options
    font_group = parser.add_argument_group("Font Options")
    font_group.add_argument(
        "--fit-fonts", action="store_true", help="Fit a font size to every bubble"
    )
    font_group.add_argument("--font-family", type=str, help="TrueType font file")
    font_group.add_argument("--font-weight", type=str, help="Font weight (e.g. bold)")

    # Output options
    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument(
        "--output", "-o", type=str, help="Save bubbles to a JSON file"
    )
    output_group.add_argument(
        "--json", action="store_true", help="Print bubbles as JSON"
    )
    output_group.add_argument(
        "--quiet", "-q", action="store_true", help="Minimal output"
    )

    return parser.parse_args(argv)


def display_bubbles(records) -> None:
    """Print bubbles as a table."""
    if not records:
        print("\nNo bubbles.")
        return

    max_len = max(len(record["word"]) for record in records)
    print()
    print(
        f"{'Word':<{max_len}} | {'Count':>5} | {'Group':>5} | {'Radius':>6} | "
        f"{'X':>8} | {'Y':>8}"
    )
    print("-" * (max_len + 48))
    for record in records:
        print(
            f"{record['word']:<{max_len}} | {record['count']:>5} | "
            f"{record['group']:>5} | {record['r']:>6.2f} | "
            f"{record['x']:>8.2f} | {record['y']:>8.2f}"
        )


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)

    # Set quiet mode
    if args.quiet or args.json:
        OUTPUT_CONFIG["verbose"] = False
        OUTPUT_CONFIG["timing_info"] = False

    if not args.input:
        print("Error: --input is required")
        return 1

    if args.transpose_embeddings:
        ASSET_CONFIG["transpose_embeddings"] = True
    if args.font_family:
        FONT_CONFIG["font_family"] = args.font_family
    if args.font_weight:
        FONT_CONFIG["font_weight"] = args.font_weight

    start_time = time.time()

    # Start loading assets while the text is read
    assets = WordAssets.load(args.embeddings, args.vocabulary, args.lemmas)

    try:
        text = extract_text(
            args.input,
            input_type=args.input_type,
            page_range=tuple(args.pdf_pages) if args.pdf_pages else None,
        )
    except (OSError, ValueError, ImportError) as e:
        print(f"Error reading input: {e}")
        assets.close()
        return 1

    visualizer = WordBubbles(
        assets,
        num_clusters=args.clusters,
        min_r=args.min_radius,
        max_r=args.max_radius,
        random_state=args.seed,
    )

    try:
        bubbles = visualizer.visualize(text, fit_fonts=args.fit_fonts)
    except (AssetLoadError, VocabularyLookupError, ValueError) as e:
        print(f"Error: {e}")
        return 1
    finally:
        assets.close()

    records = visualizer.to_records(bubbles)

    if args.json:
        print(json.dumps({"bubbles": records}, indent=2, ensure_ascii=False))
    elif not args.quiet:
        display_bubbles(records)

    if args.output:
        visualizer.save_json(args.output, bubbles)
        if not args.json:
            print(f"\nBubbles saved to: {args.output}")

    if OUTPUT_CONFIG["timing_info"]:
        elapsed = round(time.time() - start_time, 2)
        print(f"\nCompleted layout in {elapsed} seconds")

    return 0


if __name__ == "__main__":
    sys.exit(main())
