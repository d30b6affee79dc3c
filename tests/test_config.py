"""Tests for configuration loading."""
import pytest

from esgchampions.core.config.settings import ChampionsConfig
from esgchampions.core.services import CreditLedger, ModerationEngine


def test_defaults():
    config = ChampionsConfig()

    assert config.storage == "sqlite"
    assert config.review_credit == 10
    assert config.upvote_credit == 2
    assert config.comment_credit == 2
    assert config.notification_limit == 20
    assert config.demo_notifications is True
    assert config.read_state_limit == 500


def test_database_urls(tmp_path):
    assert ChampionsConfig(db_path=":memory:").get_database_url() == "sqlite+aiosqlite:///:memory:"

    path = tmp_path / "champions.db"
    assert ChampionsConfig(db_path=str(path)).get_database_url() == f"sqlite+aiosqlite:///{path}"

    url = "postgresql+asyncpg://champions@localhost/champions"
    assert ChampionsConfig(storage="postgresql", db_url=url).get_database_url() == url

    with pytest.raises(ValueError):
        ChampionsConfig(storage="postgresql").get_database_url()
    with pytest.raises(ValueError):
        ChampionsConfig(storage="mongodb").get_database_url()


def test_yaml_round_trip(tmp_path):
    path = tmp_path / "champions.yaml"
    ChampionsConfig(review_credit=15, demo_notifications=False).to_yaml(path)

    loaded = ChampionsConfig.from_yaml(path)

    assert loaded.review_credit == 15
    assert loaded.demo_notifications is False
    assert loaded.db_url is None


def test_from_yaml_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        ChampionsConfig.from_yaml(tmp_path / "missing.yaml")

    invalid = tmp_path / "invalid.yaml"
    invalid.write_text("- just\n- a list\n")
    with pytest.raises(ValueError):
        ChampionsConfig.from_yaml(invalid)


def test_environment_override(monkeypatch):
    monkeypatch.setenv("CHAMPIONS_REVIEW_CREDIT", "25")
    monkeypatch.setenv("CHAMPIONS_DEMO_NOTIFICATIONS", "false")

    config = ChampionsConfig()

    assert config.review_credit == 25
    assert config.demo_notifications is False


@pytest.mark.asyncio
async def test_review_credit_setting_drives_awards(db, tmp_path, manager, seed, make_reviews):
    config = ChampionsConfig(db_path=str(tmp_path / "unused.db"), review_credit=5)
    engine = ModerationEngine(db, CreditLedger(db, config), config)
    submission = await manager.submit_panel_review(
        seed.alice.id, seed.panel.id, make_reviews(seed.indicators)
    )

    await engine.approve(submission.id, seed.admin.id)

    score = await CreditLedger(db, config).compute_score(seed.alice.id)
    assert score.total == 15
    assert score.breakdown.reviews == 15
