"""CLI context management for store connections and shared state."""

from dataclasses import dataclass, field

from credstore import CredStore
from credstore.config import StoreSettings, get_database_url


@dataclass
class CLIContext:
    """Shared context for CLI commands.

    Manages the store lifecycle and output preferences.
    """

    database_url: str
    echo: bool
    json_output: bool
    actor: str | None = None
    _store: CredStore | None = field(default=None, init=False, repr=False)

    @classmethod
    def create(
        cls,
        database: str | None,
        echo: bool = False,
        json_output: bool = False,
        actor: str | None = None,
    ) -> "CLIContext":
        return cls(
            database_url=get_database_url(database),
            echo=echo,
            json_output=json_output,
            actor=actor,
        )

    def get_store(self, create_tables: bool = True) -> CredStore:
        """Get or create the store (lazy initialization)."""
        if self._store is None:
            settings = StoreSettings.from_env(
                database_url=self.database_url,
                echo=self.echo,
                actor=self.actor,
                create_tables=create_tables,
            )
            self._store = CredStore(settings=settings)
        return self._store

    def close(self) -> None:
        """Close the store if open."""
        if self._store is not None:
            self._store.close()
            self._store = None
