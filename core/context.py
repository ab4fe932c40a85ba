"""
Application context: the current user and the data source that goes with it.

The user is read once when the context is created and afterwards changes
only through the auth backend's session-change events.
"""
import logging
from datetime import date
from typing import Optional

from supabase import create_client

from backend.database import LocalProvider
from backend.fixtures import DEMO_USER_ID, FixtureProvider
from backend.dates import today
from backend.provider import Provider
from backend.repository import Repository
from backend.supabase_provider import SupabaseProvider

from .auth import AuthBackend, AuthEvent, AuthUser, LocalAuth, SupabaseAuth
from .config import Settings

logger = logging.getLogger(__name__)


class AppContext:
    """Per-session state shared by every page."""

    def __init__(self, auth: AuthBackend, provider: Provider, settings: Settings):
        self.auth = auth
        self.settings = settings
        self._provider = provider
        self._fixture: Optional[FixtureProvider] = None
        self.user: Optional[AuthUser] = auth.get_user()
        self._unsubscribe = auth.on_auth_state_change(self._on_auth_event)

    def _on_auth_event(self, event: AuthEvent, user: Optional[AuthUser]) -> None:
        if event is AuthEvent.SIGNED_OUT:
            self.user = None
        elif user is not None:
            self.user = user

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def user_id(self) -> str:
        """Owner id for façade filters; the demo owner when signed out."""
        return self.user.id if self.user else DEMO_USER_ID

    @property
    def repository(self) -> Repository:
        """Façade over the real backend, or over the demo dataset when signed out."""
        if self.user is not None:
            return Repository(self._provider)
        if self._fixture is None:
            self._fixture = FixtureProvider(self.today())
        return Repository(self._fixture)

    def today(self) -> date:
        return today(self.settings.timezone)

    def close(self) -> None:
        self._unsubscribe()


def build_context(settings: Settings) -> AppContext:
    """Wire the configured auth backend and provider together."""
    if settings.backend == "supabase":
        client = create_client(settings.supabase_url, settings.supabase_anon_key)
        logger.info("Using Supabase backend at %s", settings.supabase_url)
        return AppContext(SupabaseAuth(client), SupabaseProvider(client), settings)

    logger.info("Using local backend at %s", settings.db_path)
    return AppContext(
        LocalAuth(settings.db_path),
        LocalProvider(settings.db_path, settings.storage_dir),
        settings,
    )
