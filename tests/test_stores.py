"""Tests for the SQLAlchemy-backed stores."""

from datetime import date, datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from endurance_periodization.db import (
    Database,
    FitnessDay,
    MemoryFact,
    SessionRecord,
    SqlFitnessStore,
    SqlMemoryStore,
    SqlOutcomeStore,
    SqlSessionStore,
    StoreError,
)


@pytest.fixture
def db():
    database = Database("sqlite:///:memory:")
    database.create_tables()
    yield database
    database.close()


class TestSqlSessionStore:
    @pytest.fixture(autouse=True)
    def setup_store(self, db):
        self.store = SqlSessionStore(db)
        for offset, name in enumerate(["Morning Ride", "Sweet Spot Intervals", "Recovery Spin", "Long Ride"]):
            self.store.add_session("athlete-1", SessionRecord(
                id=0, date=date(2024, 1, 1) + timedelta(days=offset), name=name, load=50 + offset * 10,
            ))
        self.store.add_session("athlete-2", SessionRecord(id=0, date=date(2024, 1, 2), name="Other Ride"))

    def test_date_range_oldest_first(self):
        sessions = self.store.get_sessions("athlete-1", date(2024, 1, 2), date(2024, 1, 4))

        assert [s.name for s in sessions] == ["Sweet Spot Intervals", "Recovery Spin", "Long Ride"]
        assert all(s.id > 0 for s in sessions)

    def test_name_filter_and_limit(self):
        rides = self.store.get_sessions("athlete-1", date(2024, 1, 1), date(2024, 1, 31), name_filter="ride")
        limited = self.store.get_sessions("athlete-1", date(2024, 1, 1), date(2024, 1, 31), limit=2)

        assert [s.name for s in rides] == ["Morning Ride", "Long Ride"]
        assert len(limited) == 2

    def test_limit_keeps_newest_sessions(self):
        limited = self.store.get_sessions("athlete-1", date(2024, 1, 1), date(2024, 1, 31), limit=2)

        assert [s.name for s in limited] == ["Recovery Spin", "Long Ride"]
        assert limited[-1].date == date(2024, 1, 4)


class TestSqlFitnessStore:
    @pytest.fixture(autouse=True)
    def setup_store(self, db):
        self.store = SqlFitnessStore(db)

    def test_save_and_read_back(self):
        days = [FitnessDay(date(2024, 1, 1) + timedelta(days=i), ctl=40 + i, atl=45, tsb=i - 5) for i in range(5)]

        assert self.store.save_fitness("athlete-1", days) == 5

        history = self.store.get_fitness_history("athlete-1", date(2024, 1, 2), date(2024, 1, 3))
        assert [d.ctl for d in history] == [41, 42]
        assert self.store.get_current_fitness("athlete-1").date == date(2024, 1, 5)
        assert self.store.get_current_fitness("nobody") is None

    def test_upsert_keeps_wellness_readings(self):
        day = date(2024, 1, 1)
        self.store.save_fitness("athlete-1", [FitnessDay(day, ctl=40, atl=40, tsb=0, hrv=62.0, resting_hr=48)])
        self.store.save_fitness("athlete-1", [FitnessDay(day, ctl=41, atl=43, tsb=-2)])

        history = self.store.get_fitness_history("athlete-1", day, day)

        assert len(history) == 1
        assert history[0].ctl == 41
        assert history[0].hrv == 62.0
        assert history[0].resting_hr == 48


class TestSqlOutcomeStore:
    @pytest.fixture(autouse=True)
    def setup_store(self, db):
        self.store = SqlOutcomeStore(db)

    def test_log_and_read_newest_first(self):
        for day in range(1, 4):
            self.store.log_outcome(
                "athlete-1",
                suggested_type="threshold",
                actual_type="endurance",
                followed_suggestion=False,
                rpe=5 + day,
                created_at=datetime(2024, 1, day, 18, 0),
            )

        outcomes = self.store.get_outcomes("athlete-1", datetime(2024, 1, 2))

        assert [o.rpe for o in outcomes] == [8, 7]
        assert outcomes[0].category == "endurance"
        assert len(self.store.get_outcomes("athlete-1", datetime(2024, 1, 1), limit=1)) == 1

    def test_rpe_out_of_range(self):
        with pytest.raises(ValueError):
            self.store.log_outcome("athlete-1", rpe=11)


class TestSqlMemoryStore:
    @pytest.fixture(autouse=True)
    def setup_store(self, db):
        self.store = SqlMemoryStore(db)

    def test_upsert_replaces_by_key(self):
        fact = MemoryFact("athlete-1", "pattern", "recovery_rate", "Recovers quickly", confidence=0.6,
                          metadata={"analyzed_at": "2024-02-01T00:00:00"})
        self.store.upsert(fact)
        self.store.upsert(MemoryFact("athlete-1", "pattern", "recovery_rate", "Needs more recovery", confidence=0.8))
        self.store.upsert(MemoryFact("athlete-1", "preference", "indoor", "Prefers the trainer"))

        patterns = self.store.get_facts("athlete-1", "pattern")

        assert len(patterns) == 1
        assert patterns[0].content == "Needs more recovery"
        assert patterns[0].confidence == 0.8
        assert patterns[0].source == "data_derived"
        assert len(self.store.get_facts("athlete-1")) == 2


class TestStoreErrors:
    def test_missing_tables_raise_store_error(self):
        database = Database("sqlite:///:memory:")
        store = SqlSessionStore(database)

        with pytest.raises(StoreError) as exc_info:
            store.get_sessions("athlete-1", date(2024, 1, 1), date(2024, 1, 2))

        assert isinstance(exc_info.value.__cause__, OperationalError)
        database.close()


class TestDatabaseMaintenance:
    @pytest.fixture(autouse=True)
    def setup_stores(self, db):
        self.db = db
        self.sessions = SqlSessionStore(db)
        self.fitness = SqlFitnessStore(db)
        self.outcomes = SqlOutcomeStore(db)
        self.memory = SqlMemoryStore(db)
        for athlete_id in ("athlete-1", "athlete-2"):
            self.sessions.add_session(athlete_id, SessionRecord(id=0, date=date(2024, 1, 1), name="Ride"))
            self.fitness.save_fitness(athlete_id, [FitnessDay(date(2024, 1, 1), ctl=40, atl=40, tsb=0)])
            self.outcomes.log_outcome(athlete_id, actual_type="endurance", rpe=4, created_at=datetime(2024, 1, 1))
            self.memory.upsert(MemoryFact(athlete_id, "pattern", "recovery_rate", "Recovers quickly"))

    def test_purge_athlete_only_touches_that_athlete(self):
        deleted = self.db.purge_athlete("athlete-1")

        assert deleted == {"sessions": 1, "fitness_history": 1, "workout_outcomes": 1, "athlete_memory": 1}
        assert self.sessions.get_sessions("athlete-1", date(2024, 1, 1), date(2024, 1, 1)) == []
        assert self.memory.get_facts("athlete-1") == []
        assert len(self.sessions.get_sessions("athlete-2", date(2024, 1, 1), date(2024, 1, 1))) == 1
        assert self.fitness.get_current_fitness("athlete-2") is not None

    def test_reset_empties_every_table(self):
        self.db.reset()

        assert self.outcomes.get_outcomes("athlete-2", datetime(2024, 1, 1)) == []
        assert self.fitness.get_current_fitness("athlete-1") is None
