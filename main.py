"""texthelper - explain, summarize and rewrite text with an AI service

Main entry point for the texthelper command line.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

from texthelper.history import HistoryStore
from texthelper.prompts import DEFAULT_VARIANT, available_variants
from texthelper.process import ACTIONS, PROVIDERS, LLMClient, process_text
from texthelper.utils.markdown_render import render_markdown_to_html

logger = logging.getLogger(__name__)

API_KEY_ENV = {
    'groq': 'GROQ_API_KEY',
    'openai': 'OPENAI_API_KEY',
    'anthropic': 'ANTHROPIC_API_KEY',
}


def setup_logging(log_file: str = 'texthelper.log'):
    """Configure console and file logging"""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_file, encoding='utf-8')
        ]
    )


def load_config(require_api_key: bool = True):
    """Load configuration from environment variables

    Args:
        require_api_key: Whether the selected provider's API key must be set

    Returns:
        Dictionary with configuration values
    """
    load_dotenv()

    config = {
        'llm_provider': os.getenv('LLM_PROVIDER', 'groq').strip().lower(),
        'history_file': os.getenv('HISTORY_FILE', 'history.json'),
        'output_file': os.getenv('OUTPUT_FILE', 'output.html'),
        'prompt_variant': os.getenv('PROMPT_VARIANT', DEFAULT_VARIANT).strip().lower() or DEFAULT_VARIANT,
    }

    if config['llm_provider'] not in PROVIDERS:
        logger.error(f"Invalid LLM_PROVIDER: {config['llm_provider']}")
        raise ValueError(f"LLM_PROVIDER must be one of: {', '.join(PROVIDERS)}")

    variants = available_variants()
    if config['prompt_variant'] not in variants:
        logger.error(f"Unknown PROMPT_VARIANT: {config['prompt_variant']}")
        raise ValueError(f"PROMPT_VARIANT must be one of: {', '.join(variants)}")

    key_env = API_KEY_ENV[config['llm_provider']]
    if require_api_key and not os.getenv(key_env):
        logger.error(f"{key_env} not set")
        raise ValueError(f"{key_env} is required when using {config['llm_provider']}")

    logger.info(f"Configuration loaded: LLM={config['llm_provider']}, "
                f"prompts={config['prompt_variant']}, "
                f"history={config['history_file']}")

    return config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='texthelper',
        description='Explain, summarize or rewrite text with an AI service.',
    )
    parser.add_argument('action', nargs='?',
                        help=f"one of: {', '.join(ACTIONS)} (default: explain); may be omitted")
    parser.add_argument('input', nargs='?',
                        help="input text file, '-' or omitted for stdin")
    parser.add_argument('-o', '--output', help='HTML output file')
    parser.add_argument('--render-only', action='store_true',
                        help='render the input as Markdown without calling the AI service')
    parser.add_argument('--history', nargs='?', type=int, const=0, metavar='PAGE',
                        help='list a page of past requests')
    parser.add_argument('--delete', type=int, metavar='ID',
                        help='delete a past request')
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse arguments; a lone positional that is not an action is the input file"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.action is not None and args.action.lower() not in ACTIONS:
        if args.input is not None:
            parser.error(f"unknown action '{args.action}' (choose from {', '.join(ACTIONS)})")
        args.input, args.action = args.action, None

    args.action = (args.action or 'explain').lower()
    args.input = args.input or '-'
    return args


def read_input(path: str) -> str:
    """Read input text from a file or stdin"""
    if path == '-':
        return sys.stdin.read()
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def save_output(html_fragment: str, output_file: str):
    """Save rendered HTML to a file"""
    try:
        with open(output_file, 'w', encoding='utf-8') as f:
            f.write(html_fragment)
        logger.info(f"Output saved to {output_file}")
    except IOError as e:
        logger.error(f"Failed to save output: {e}")
        raise


def show_history(history: HistoryStore, page: int):
    result = history.page(page=page)
    print(f"page {result.page + 1}/{max(result.total_pages, 1)} ({result.total} entries)")
    for entry in result.items:
        preview = entry['input_text'].strip().replace('\n', ' ')[:60]
        print(f"[{entry['id']}] {entry['created_at'][:19]} {entry['action']}: {preview}")


def main(argv: Optional[List[str]] = None):
    """Main execution flow"""
    args = parse_args(argv)

    try:
        needs_api = not (args.render_only or args.history is not None or args.delete is not None)
        config = load_config(require_api_key=needs_api)
        history = HistoryStore(history_file=config['history_file'])

        if args.history is not None:
            show_history(history, args.history)
            return 0

        if args.delete is not None:
            return 0 if history.delete(args.delete) else 1

        text = read_input(args.input)
        output_file = args.output or config['output_file']

        if args.render_only:
            save_output(render_markdown_to_html(text), output_file)
            return 0

        llm_client = LLMClient(provider=config['llm_provider'])
        result = process_text(
            text,
            args.action,
            llm_client,
            history=history,
            variant=config['prompt_variant'],
        )
        save_output(result.html, output_file)

        if not result.ok:
            logger.warning(f"AI request did not succeed: {result.output}")
            return 1
        return 0

    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1


def cli():
    setup_logging()
    return main()


if __name__ == "__main__":
    sys.exit(cli())
