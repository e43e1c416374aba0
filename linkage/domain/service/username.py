"""Username disambiguation for provider handles."""

from collections.abc import Awaitable, Callable

from .base import Service

UsernameTakenPredicate = Callable[[str], Awaitable[bool]]


class UsernameDisambiguator(Service):
    """Pick a username for a new account from the provider handle.

    Policy: the handle itself, or the handle plus a fixed provider suffix
    when the handle is taken. The suffixed form is not checked, so a second
    collision is left for the directory's username constraint to reject.
    """

    def __init__(self, suffix: str) -> None:
        self.suffix = suffix

    async def resolve(self, desired: str, is_taken: UsernameTakenPredicate) -> str:
        """Resolve the username to use.

        Args:
            desired: Username requested (the provider handle)
            is_taken: Async predicate telling whether a username is owned

        Returns:
            ``desired`` if free, else ``desired`` + suffix
        """
        if not await is_taken(desired):
            return desired
        return f"{desired}{self.suffix}"
