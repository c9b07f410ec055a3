"""Confirmation capability for trust decisions.

The TrustStore never reads a terminal itself. It asks a Confirmer, which
lets interactive tools prompt on the console and lets CI inject a fixed
policy instead.
"""

from typing import Callable, Protocol, runtime_checkable

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from stax_security.trust.models import TrustPrompt


@runtime_checkable
class Confirmer(Protocol):
    """Decides whether a first-use or changed host key may be trusted."""

    def confirm(self, prompt: TrustPrompt) -> bool:
        """Return True only on an explicit affirmative answer."""
        ...


def is_affirmative(response: str | None) -> bool:
    """Only ``yes`` (trimmed, any case) counts as acceptance."""
    if response is None:
        return False
    return response.strip().lower() == "yes"


class ConsoleConfirmer:
    """Prompts the operator on a rich console.

    The warning is rendered as a panel (red for a changed key, yellow for
    a first connection) followed by a ``(yes/no)`` question. End of input
    counts as a decline.
    """

    def __init__(self, console: Console | None = None):
        self.console = console or Console(stderr=True)

    def confirm(self, prompt: TrustPrompt) -> bool:
        style = "bold red" if prompt.is_mismatch else "yellow"
        body = Text("\n".join(prompt.lines))
        self.console.print()
        self.console.print(Panel(body, title=prompt.title, border_style=style))

        try:
            response = self.console.input(prompt.question)
        except EOFError:
            response = ""

        accepted = is_affirmative(response)
        if accepted and prompt.is_mismatch:
            self.console.print(f"Host key updated for '{prompt.hostname}'.\n")
        elif accepted:
            self.console.print(f"Host '{prompt.hostname}' added to known hosts.\n")
        return accepted


class StaticConfirmer:
    """Answers every prompt the same way.

    StaticConfirmer(False) is the auto-reject policy for non-interactive
    runs; StaticConfirmer(True) accepts everything and should be reserved
    for provisioning throwaway environments.
    """

    def __init__(self, answer: bool):
        self.answer = answer

    def confirm(self, prompt: TrustPrompt) -> bool:
        return self.answer


class CallbackConfirmer:
    """Adapts a plain callable into a Confirmer."""

    def __init__(self, callback: Callable[[TrustPrompt], bool]):
        self._callback = callback

    def confirm(self, prompt: TrustPrompt) -> bool:
        return bool(self._callback(prompt))


def confirmer_for_policy(policy: str, console: Console | None = None) -> Confirmer:
    """Build the Confirmer for a ``trust_policy`` setting.

    Args:
        policy: "prompt", "reject" or "accept".
        console: Console for the prompt policy.

    Raises:
        ValueError: For an unknown policy name.
    """
    if policy == "prompt":
        return ConsoleConfirmer(console)
    if policy == "reject":
        return StaticConfirmer(False)
    if policy == "accept":
        return StaticConfirmer(True)
    raise ValueError(f"unknown trust policy: {policy}")
