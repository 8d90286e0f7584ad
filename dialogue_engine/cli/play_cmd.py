"""
Interactive Dialogue Player - Walk through a dialogue tree and make choices in real-time!
"""

import shutil
import textwrap
from pathlib import Path
from typing import Callable, Optional

from dialogue_engine.errors import AutoAdvanceBudgetExceeded, InvalidChoiceError
from dialogue_engine.session import DEFAULT_AUTO_ADVANCE_BUDGET, DialogSession, Presentation, StepResult
from dialogue_engine.state.store import ContextStore
from dialogue_engine.tree.tree import DialogTree


# ANSI color codes for terminal output
class Colors:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    ITALIC = "\033[3m"

    RED = "\033[31m"
    YELLOW = "\033[33m"

    BRIGHT_BLACK = "\033[90m"
    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_BLUE = "\033[94m"
    BRIGHT_MAGENTA = "\033[95m"
    BRIGHT_CYAN = "\033[96m"


class DialoguePlayer:
    """Interactive dialogue player"""

    def __init__(
        self,
        tree: DialogTree,
        store: Optional[ContextStore] = None,
        budget: int = DEFAULT_AUTO_ADVANCE_BUDGET,
        verbose: bool = False,
        input_func: Callable[[str], str] = input,
        output_func: Callable[[str], None] = print,
    ):
        self.tree = tree
        self.store = store or ContextStore(context=tree.variables)
        self.session = DialogSession(tree, self.store, auto_advance_budget=budget)
        self.verbose = verbose
        self.input = input_func
        self.output = output_func
        self.term_width = shutil.get_terminal_size(fallback=(80, 24)).columns

    @classmethod
    def from_file(cls, dialogue_path: Path, **kwargs) -> "DialoguePlayer":
        return cls(DialogTree.load_file(dialogue_path), **kwargs)

    def format_dialogue_box(self, text: str, speaker: str, color: str, max_width: int = 60) -> str:
        """Format dialogue text in a nice box"""
        actual_max = max(20, min(max_width, self.term_width - 8))

        lines = []
        for paragraph in text.split("\n"):
            if paragraph:
                lines.extend(textwrap.wrap(paragraph, width=actual_max))
            else:
                lines.append("")

        box_width = max(len(line) for line in lines) if lines else 20
        box_width = max(box_width, len(speaker) + 2)

        result = [f"\n  {color}╭─ {speaker} {'─' * (box_width - len(speaker) - 1)}╮{Colors.RESET}"]
        for line in lines:
            result.append(f"  {color}│{Colors.RESET} {line.ljust(box_width)} {color}│{Colors.RESET}")
        result.append(f"  {color}╰{'─' * (box_width + 2)}╯{Colors.RESET}")
        return "\n".join(result)

    def play(self) -> StepResult:
        """Start playing the dialogue; returns the final step result"""
        self.output(f"\n{Colors.BRIGHT_CYAN}{'=' * 70}{Colors.RESET}")
        title = self.tree.title or self.tree.id
        self.output(f"{Colors.BRIGHT_YELLOW}{Colors.BOLD}🎭 {title}{Colors.RESET}")
        self.output(f"{Colors.BRIGHT_CYAN}{'=' * 70}{Colors.RESET}")
        self.output(
            f"Enter a number to choose. Type {Colors.YELLOW}'state'{Colors.RESET} to see game state, "
            f"{Colors.YELLOW}'quit'{Colors.RESET} to stop."
        )

        try:
            result = self.session.start()
        except AutoAdvanceBudgetExceeded as e:
            self._show_broken(e)
            raise

        while True:
            self.show_step(result)

            if result.is_terminal:
                break

            try:
                next_result = self.prompt(result)
            except AutoAdvanceBudgetExceeded as e:
                self._show_broken(e)
                raise

            if next_result is None:
                self.output(f"\n{Colors.BRIGHT_YELLOW}👋 Thanks for playing!{Colors.RESET}")
                return result
            result = next_result

        self.output(f"\n{Colors.BRIGHT_CYAN}{'=' * 70}{Colors.RESET}")
        self.output(f"{Colors.BRIGHT_YELLOW}{Colors.BOLD}🎬 THE END{Colors.RESET}")
        self.output(f"{Colors.BRIGHT_CYAN}{'=' * 70}{Colors.RESET}")
        self.show_state()
        return result

    def show_step(self, result: StepResult):
        for presentation in result.passed:
            self.show_presentation(presentation)
        if result.presentation:
            self.show_presentation(result.presentation)

    def show_presentation(self, presentation: Presentation):
        if self.verbose:
            self.output(f"\n{Colors.DIM}[{presentation.node_id}]{Colors.RESET}")

        if presentation.text:
            if presentation.speaker:
                self.output(self.format_dialogue_box(presentation.text, presentation.speaker, Colors.BRIGHT_CYAN))
            else:
                wrapped = textwrap.fill(presentation.text, width=min(70, self.term_width - 6))
                self.output(f"\n{Colors.ITALIC}{Colors.BRIGHT_BLACK}📖 {wrapped}{Colors.RESET}")

    def prompt(self, result: StepResult) -> Optional[StepResult]:
        """Ask for input until a valid choice is made; None means the player quit"""
        choices = result.choices

        if choices:
            self.output(f"\n{Colors.DIM}{'─' * 50}{Colors.RESET}")
            for i, choice in enumerate(choices, 1):
                req = f" {Colors.DIM}({choice.requirement_text}){Colors.RESET}" if choice.requirements else ""
                self.output(f"  {Colors.BRIGHT_YELLOW}[{i}]{Colors.RESET} {Colors.YELLOW}{choice.text}{Colors.RESET}{req}")
        else:
            self.output(f"\n{Colors.DIM}(press Enter to continue){Colors.RESET}")

        while True:
            try:
                user_input = self.input(f"\n{Colors.BRIGHT_MAGENTA}>{Colors.RESET} ").strip().lower()
            except (KeyboardInterrupt, EOFError):
                return None

            if user_input in ("quit", "exit", "q"):
                return None
            if user_input == "state":
                self.show_state()
                continue

            if not choices:
                return self.session.advance()

            try:
                choice_num = int(user_input)
            except ValueError:
                self.output(f"{Colors.RED}❌ Please enter a valid number or command.{Colors.RESET}")
                continue

            try:
                result = self.session.choose(choice_num - 1)
            except InvalidChoiceError:
                self.output(f"{Colors.RED}❌ Invalid choice. Please enter a number from the list.{Colors.RESET}")
                continue

            selected = choices[choice_num - 1]
            if selected.text:
                self.output(self.format_dialogue_box(selected.text, "You", Colors.BRIGHT_GREEN))
            return result

    def show_state(self):
        """Display current game state"""
        self.output(f"\n{Colors.BRIGHT_BLUE}{'=' * 50}{Colors.RESET}")
        self.output(f"{Colors.BRIGHT_BLUE}📊 CURRENT GAME STATE{Colors.RESET}")
        self.output(f"{Colors.BRIGHT_BLUE}{'=' * 50}{Colors.RESET}")

        self.output("\n🚩 Flags:")
        if self.store.flags:
            for flag, value in sorted(self.store.flags.items()):
                self.output(f"  • {flag}: {value}")
        else:
            self.output("  (none)")

        self.output("\n📈 Context:")
        if self.store.context:
            for key, value in sorted(self.store.context.items()):
                self.output(f"  • {key}: {value}")
        else:
            self.output("  (none)")

        self.output("\n📜 Quests:")
        if self.store.quests:
            for key, record in sorted(self.store.quests.items()):
                self.output(f"  • {key}: {record.status.value}")
        else:
            self.output("  (none)")

        self.output("\n📍 Current Node: " + (self.session.current_node_id or "None"))
        self.output(f"📝 Nodes Visited: {len(set(self.session.history))}/{len(self.tree.nodes)}")
        self.output("=" * 50)

    def _show_broken(self, error: AutoAdvanceBudgetExceeded):
        self.output(f"\n{Colors.BRIGHT_RED}❌ Conversation is broken: {error}{Colors.RESET}")
