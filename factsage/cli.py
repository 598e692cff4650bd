"""CLI interface for FactSage"""

import sys
import argparse
import logging
import textwrap
from pathlib import Path
from typing import List, Optional

from colorama import init, Fore, Style

from . import __version__, __author__, config
from .agent import FactSageAgent
from .knowledge import FileKnowledgeStore, MemoryKnowledgeStore, StoreUnavailable, TimeoutStore
from .responses import format_stats_response

logger = logging.getLogger(__name__)

_PACKAGE_LOGGERS = (
    'factsage.agent', 'factsage.knowledge', 'factsage.classifier',
    'factsage.retriever', 'factsage.extractor', 'factsage.seed', 'factsage.ingest',
)


def configure_logging(verbose: bool = False):
    """WARNING by default; --verbose shows what the agent learns and retrieves."""
    logging.basicConfig(level=logging.WARNING, format='%(levelname)s: %(message)s')
    level = logging.INFO if verbose else logging.ERROR
    for name in _PACKAGE_LOGGERS:
        logging.getLogger(name).setLevel(level)


def _confidence_color(confidence: float) -> str:
    if confidence >= 0.9:
        return Fore.GREEN
    if confidence > 0:
        return Fore.YELLOW
    return Fore.RED


class FactSageCLI:
    """Interactive CLI for the FactSage agent"""

    def __init__(self, agent: FactSageAgent):
        self.agent = agent
        self.running = False

    def print_banner(self):
        W = 62
        title_text = 'F a c t S a g e'
        sub_text = 'Teach me facts, then ask me about them'
        print()
        print(f"{Fore.MAGENTA}╔{'═' * W}╗{Style.RESET_ALL}")
        print(f"{Fore.MAGENTA}║{Fore.CYAN + Style.BRIGHT}{title_text:^{W}}{Style.RESET_ALL}{Fore.MAGENTA}║{Style.RESET_ALL}")
        print(f"{Fore.MAGENTA}║{Fore.YELLOW}{sub_text:^{W}}{Style.RESET_ALL}{Fore.MAGENTA}║{Style.RESET_ALL}")
        print(f"{Fore.MAGENTA}║{('v' + __version__):^{W}}║{Style.RESET_ALL}")
        print(f"{Fore.MAGENTA}╚{'═' * W}╝{Style.RESET_ALL}")
        print()

    def print_help(self):
        bar = f"{Fore.CYAN}{'─' * 60}{Style.RESET_ALL}"
        print(f"\n{bar}")
        print(f"{Fore.CYAN + Style.BRIGHT}  Commands{Style.RESET_ALL}")
        print(bar)
        for cmd, desc in [
            ("help", "Show this help message"),
            ("stats", "Show knowledge store statistics"),
            ("seed", "Load the arithmetic table and base knowledge"),
            ("ingest FILE", "Learn from a local HTML or text file"),
            ("version", "Show version"),
            ("quit", "Exit the application"),
        ]:
            print(f"  {Fore.GREEN}{cmd:<13}{Style.RESET_ALL}{Fore.WHITE}{desc}{Style.RESET_ALL}")

        print(f"\n{Fore.CYAN + Style.BRIGHT}  Examples{Style.RESET_ALL}")
        for ex in [
            "the capital of Brazil is Brasília",
            "capital of Brazil",
            "5 + 3 = 8",
            "12 * 4",
            "teach: HTML is the markup language of the web",
        ]:
            print(f"  {Fore.YELLOW}›{Style.RESET_ALL} {ex}")
        print(f"{bar}\n")

    def print_response(self, text: str, confidence: Optional[float] = None):
        sep = f"{Fore.GREEN}{'─' * 62}{Style.RESET_ALL}"
        print(f"\n{sep}")
        label = f"{Fore.GREEN + Style.BRIGHT}  {config.CLI_ASSISTANT}{Style.RESET_ALL}"
        if confidence is not None:
            label += f"  {_confidence_color(confidence)}[{confidence:.0%}]{Style.RESET_ALL}"
        print(label)
        print(sep)
        for raw_line in text.splitlines():
            for line in textwrap.wrap(raw_line, width=config.CLI_WIDTH) or [""]:
                print(f"{Fore.WHITE}{line}{Style.RESET_ALL}")
        print(f"{sep}\n")

    def print_error(self, error: str):
        print(f"\n{Fore.RED}  ✗  {error}{Style.RESET_ALL}\n")

    def get_input(self) -> str:
        try:
            prompt = f"{Fore.LIGHTMAGENTA_EX + Style.BRIGHT} {config.CLI_PROMPT} {Style.RESET_ALL}› "
            return input(prompt).strip()
        except (KeyboardInterrupt, EOFError):
            return "quit"

    def handle_command(self, command: str):
        """
        Handle special commands.
        Returns True to continue, False to exit, None if not a command.
        """
        cmd = command.lower()

        if cmd in ('quit', 'exit', 'q'):
            print(f"\n{Fore.MAGENTA}  Goodbye!{Style.RESET_ALL}\n")
            return False

        if cmd == 'help':
            self.print_help()
            return True

        if cmd == 'version':
            print(f"\n  FactSage v{__version__}  ·  {__author__}\n")
            return True

        if cmd in ('stats', 'statistics'):
            try:
                self.print_response(format_stats_response(self.agent.get_stats()))
            except StoreUnavailable as e:
                self.print_error(f"Knowledge store unavailable: {e}")
            return True

        if cmd == 'seed':
            try:
                inserted = self.agent.seed(show_progress=True)
            except StoreUnavailable as e:
                self.print_error(f"Seeding failed: {e}")
                return True
            if inserted:
                print(f"{Fore.GREEN}  ✓  Added {inserted} facts{Style.RESET_ALL}\n")
            else:
                print(f"{Fore.CYAN}  Seed data already present.{Style.RESET_ALL}\n")
            return True

        if cmd.startswith("ingest "):
            self.ingest_file(command[len("ingest "):].strip())
            return True

        return None  # Not a command

    def ingest_file(self, path: str, source: Optional[str] = None) -> bool:
        """Store a local HTML or text file; returns False when it could not be read or stored"""
        file_path = Path(path).expanduser()
        source = source or file_path.name
        try:
            content = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            self.print_error(f"Cannot read {path}: {e}")
            return False
        try:
            result = self.agent.ingest(content, source)
        except StoreUnavailable as e:
            self.print_error(f"Ingestion failed: {e}")
            return False
        if result["skipped"]:
            print(f"{Fore.CYAN}  {source} was already ingested.{Style.RESET_ALL}\n")
        else:
            print(f"{Fore.GREEN}  ✓  Stored {result['chunks']} chunks and "
                  f"{result['equations']} equations from {source}{Style.RESET_ALL}\n")
        return True

    def run(self):
        """Main CLI loop."""
        # Initialize colorama for Windows support
        init(autoreset=True)
        self.print_banner()
        self.print_response(self.agent.get_greeting())
        self.running = True

        while self.running:
            user_input = self.get_input()
            if not user_input:
                continue

            result = self.handle_command(user_input)
            if result is False:
                break
            if result is True:
                continue

            answer = self.agent.respond(user_input)
            if answer.ok:
                self.print_response(answer.text, answer.confidence)
            else:
                self.print_error(answer.text)


def build_store(store_path: Optional[str] = None, memory: bool = False):
    """Store used by the CLI: in-memory, or the JSON file wrapped with a timeout."""
    if memory:
        return MemoryKnowledgeStore()
    path = Path(store_path) if store_path else config.KNOWLEDGE_STORE_FILE
    return TimeoutStore(FileKnowledgeStore(path))


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point — supports --version, --about, one-shot and interactive mode"""
    parser = argparse.ArgumentParser(
        prog="factsage",
        description="FactSage — learns facts from what you teach it and answers from memory",
        epilog=f"Developed by: {__author__}",
    )
    parser.add_argument("--version", "-v", action="version", version=f"FactSage v{__version__}")
    parser.add_argument("--about", action="store_true", help="Show about information and exit")
    parser.add_argument("--store", metavar="PATH", help="Knowledge store file (default: %(default)s)",
                        default=str(config.KNOWLEDGE_STORE_FILE))
    parser.add_argument("--memory", action="store_true", help="Use a throwaway in-memory store")
    parser.add_argument("--seed", action="store_true", help="Load the arithmetic table and base knowledge before starting")
    parser.add_argument("--ingest", metavar="FILE", help="Learn from a local HTML or text file before starting")
    parser.add_argument("--source", metavar="TAG", help="Source tag for --ingest (default: the file name)")
    parser.add_argument("--message", "-m", help="Answer a single message and exit")
    parser.add_argument("--verbose", action="store_true", help="Log what is learned and retrieved")

    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.about:
        print(f"{Fore.CYAN}FactSage{Style.RESET_ALL}")
        print("  Pattern-based teaching · Keyword classification · Left-to-right arithmetic")
        print(f"  {Fore.GREEN}Version   : {__version__}{Style.RESET_ALL}")
        print(f"  {Fore.GREEN}Developer : {__author__}{Style.RESET_ALL}")
        return 0

    try:
        store = build_store(args.store, args.memory)
    except StoreUnavailable as e:
        print(f"{Fore.RED}Cannot open knowledge store: {e}{Style.RESET_ALL}")
        return 1

    agent = FactSageAgent(store)
    try:
        if args.seed:
            agent.seed(show_progress=args.message is None)

        if args.ingest and not FactSageCLI(agent).ingest_file(args.ingest, args.source):
            return 1

        if args.message is not None:
            answer = agent.respond(args.message)
            print(answer.text)
            return 0 if answer.ok else 1

        FactSageCLI(agent).run()
        return 0
    except StoreUnavailable as e:
        print(f"{Fore.RED}Knowledge store unavailable: {e}{Style.RESET_ALL}")
        logger.exception("Store failure")
        return 1
    finally:
        agent.close()


if __name__ == "__main__":
    sys.exit(main())
