"""Shared fixtures: a fresh SQLite database per test and seeded reference data."""
from dataclasses import dataclass

import pytest
from httpx import ASGITransport, AsyncClient

from esgchampions.api.app import create_app
from esgchampions.core.config.settings import ChampionsConfig
from esgchampions.core.models import Champion, Indicator, Panel
from esgchampions.core.schemas import ChampionCreate, IndicatorCreate, IndicatorReviewInput, PanelCreate
from esgchampions.core.services import (
    Catalog,
    CreditLedger,
    ModerationEngine,
    NotificationCenter,
    ProgressTracker,
    ReadStateCache,
    SubmissionManager,
    VoteService,
)
from esgchampions.core.storage.database import Database, init_db


@dataclass
class Seed:
    alice: Champion
    bob: Champion
    admin: Champion
    panel: Panel
    indicators: list[Indicator]
    other_panel: Panel
    other_indicators: list[Indicator]


@pytest.fixture
def config(tmp_path) -> ChampionsConfig:
    """Test configuration backed by a SQLite file in a temporary directory."""
    return ChampionsConfig(db_path=str(tmp_path / "champions.db"))


@pytest.fixture
async def db(config: ChampionsConfig):
    """Create test database."""
    db = init_db(config.get_database_url())
    await db.create_tables()
    yield db
    await db.close()


@pytest.fixture
async def seed(db: Database) -> Seed:
    """Three champions and two panels with three indicators each."""
    catalog = Catalog(db)
    alice = await catalog.register_champion(
        ChampionCreate(email="alice@example.com", full_name="Alice Green", company="Acme Ltd")
    )
    bob = await catalog.register_champion(
        ChampionCreate(email="bob@example.com", full_name="Bob Stone", company="Northwind")
    )
    admin = await catalog.register_champion(
        ChampionCreate(email="admin@example.com", full_name="Ada Admin"), is_admin=True
    )

    panel = await catalog.create_panel(
        PanelCreate(name="Climate & GHG Emissions", category="environmental", primary_framework="GRI")
    )
    other_panel = await catalog.create_panel(
        PanelCreate(name="Human Rights", category="social", order_index=1)
    )

    indicators = []
    other_indicators = []
    for i in range(1, 4):
        indicators.append(await catalog.create_indicator(
            IndicatorCreate(panel_id=panel.id, code=f"E1-{i}", name=f"Scope {i} emissions", order_index=i)
        ))
        other_indicators.append(await catalog.create_indicator(
            IndicatorCreate(panel_id=other_panel.id, code=f"S1-{i}", name=f"Labour practice {i}", order_index=i)
        ))

    return Seed(
        alice=alice,
        bob=bob,
        admin=admin,
        panel=panel,
        indicators=indicators,
        other_panel=other_panel,
        other_indicators=other_indicators,
    )


@pytest.fixture
def tracker(db: Database) -> ProgressTracker:
    return ProgressTracker(db)


@pytest.fixture
def manager(db: Database, tracker: ProgressTracker) -> SubmissionManager:
    return SubmissionManager(db, tracker)


@pytest.fixture
def ledger(db: Database, config: ChampionsConfig) -> CreditLedger:
    return CreditLedger(db, config)


@pytest.fixture
def engine(db: Database, ledger: CreditLedger, config: ChampionsConfig) -> ModerationEngine:
    return ModerationEngine(db, ledger, config)


@pytest.fixture
def read_state() -> ReadStateCache:
    return ReadStateCache()


@pytest.fixture
def center(db: Database, read_state: ReadStateCache, config: ChampionsConfig) -> NotificationCenter:
    return NotificationCenter(db, read_state, config)


@pytest.fixture
def votes(db: Database, tracker: ProgressTracker) -> VoteService:
    return VoteService(db, tracker)


@pytest.fixture
def app(db: Database, config: ChampionsConfig):
    """App bound to the test database."""
    return create_app(db=db, config=config)


@pytest.fixture
async def client(app):
    """Create test client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_reviews():
    """Build one indicator review input per indicator."""

    def build(indicators, **overrides) -> list[IndicatorReviewInput]:
        values = {"importance": "important", "rating": 4, "rationale": "Material for SMEs"}
        values.update(overrides)
        return [IndicatorReviewInput(indicator_id=i.id, **values) for i in indicators]

    return build
