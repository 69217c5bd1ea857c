"""
Database Connection and Session Management

This module handles the relational store for mains performance tests
and provides session management for the FastAPI application.

Features:
- Connection pooling (QueuePool for server databases, SQLite for local use)
- ORM tables for tests, devices, steps, observations and cached analyses
- Conversion from rows to the analysis engine's records
- Health checking
- Table creation on startup
"""

import os
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List, Tuple
from contextlib import contextmanager

from sqlalchemy import (
    create_engine, text, func, Column, Float, String, Integer, DateTime, JSON,
    ForeignKey, UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session
from sqlalchemy.pool import QueuePool
from sqlalchemy.exc import SQLAlchemyError

from core.models import (
    MainsTest,
    MainsTestDevice,
    MainsTestObservation,
    MainsTestResults,
    MainsTestStep,
    ObservationMethod,
    SensorType,
)

logger = logging.getLogger(__name__)

ANALYSIS_VERSION = "1.0.0"

# =========================================
# Database Configuration
# =========================================

def get_database_url() -> str:
    """Get database URL from environment."""
    return os.getenv("DATABASE_URL", "sqlite:///./mains_tests.db")


def _engine_kwargs(url: str) -> Dict[str, Any]:
    """Pool settings per backend (SQLite cannot use QueuePool across threads)."""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "poolclass": QueuePool,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_pre_ping": True,  # Verify connections before use
    }


engine = create_engine(
    get_database_url(),
    echo=os.getenv("SQL_ECHO", "false").lower() == "true",
    **_engine_kwargs(get_database_url())
)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for ORM models
Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =========================================
# Tables
# =========================================

class MainsTestRow(Base):
    """One mains performance test."""
    __tablename__ = "mains_performance_tests"

    id = Column(String(64), primary_key=True, default=_new_id)
    property_id = Column(Integer, index=True)
    survey_id = Column(Integer)
    source_point = Column(String(50), nullable=False, default="outside_tap")
    ambient_temp_c = Column(Float)
    notes = Column(String)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    created_by = Column(Integer)

    devices = relationship("MainsTestDeviceRow", order_by="MainsTestDeviceRow.label")
    steps = relationship("MainsTestStepRow", order_by="MainsTestStepRow.index")
    observations = relationship("MainsTestObservationRow", order_by="MainsTestObservationRow.sequence")
    analysis = relationship("MainsTestAnalysisRow", uselist=False)


class MainsTestDeviceRow(Base):
    """A measuring device used during a test."""
    __tablename__ = "mains_test_devices"

    id = Column(String(64), primary_key=True, default=_new_id)
    test_id = Column(String(64), ForeignKey("mains_performance_tests.id"), nullable=False, index=True)
    label = Column(String(20), nullable=False)
    location = Column(String, default="")
    sensor_type = Column(String(20), nullable=False, default=SensorType.MANUAL.value)
    calibration_profile_id = Column(String(64))
    notes = Column(String)


class MainsTestStepRow(Base):
    """One configuration of open outlets."""
    __tablename__ = "mains_test_steps"
    __table_args__ = (UniqueConstraint("test_id", "index", name="uq_mains_test_steps_test_index"),)

    id = Column(String(64), primary_key=True, default=_new_id)
    test_id = Column(String(64), ForeignKey("mains_performance_tests.id"), nullable=False, index=True)
    index = Column(Integer, nullable=False)
    label = Column(String, nullable=False)
    outlet_count = Column(Integer, nullable=False, default=0)
    valve_state = Column(String)
    duration_seconds = Column(Integer)
    target_flow_lpm = Column(Float)
    notes = Column(String)


class MainsTestObservationRow(Base):
    """A single reading for one step and one device."""
    __tablename__ = "mains_test_observations"

    id = Column(String(64), primary_key=True, default=_new_id)
    test_id = Column(String(64), ForeignKey("mains_performance_tests.id"), nullable=False, index=True)
    step_id = Column(String(64), ForeignKey("mains_test_steps.id"), nullable=False, index=True)
    device_id = Column(String(64), ForeignKey("mains_test_devices.id"), nullable=False, index=True)
    sequence = Column(Integer, nullable=False, default=0)  # entry order within the test
    timestamp = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    pressure_bar = Column(Float)
    flow_lpm = Column(Float)
    water_temp_c = Column(Float)
    quality_flags = Column(JSON, nullable=False, default=list)
    method = Column(String(20), nullable=False, default=ObservationMethod.MANUAL.value)
    entered_by = Column(Integer)


class MainsTestAnalysisRow(Base):
    """Cached analysis for a test (one row per test, replaced on recompute)."""
    __tablename__ = "mains_test_analyses"

    id = Column(String(64), primary_key=True, default=_new_id)
    test_id = Column(String(64), ForeignKey("mains_performance_tests.id"), nullable=False, unique=True)
    analysis_version = Column(String(20), nullable=False)
    computed_at = Column(DateTime(timezone=True), nullable=False)
    static_pressure_bar = Column(Float)
    dynamic_pressure_at_steps = Column(JSON)
    max_flow_observed_lpm = Column(Float)
    pressure_drop_per_outlet = Column(Float)
    supply_curve_points = Column(JSON)
    risk_flags = Column(JSON)
    confidence = Column(JSON)


# =========================================
# Row -> Record Conversion
# =========================================

def to_test_record(row: MainsTestRow) -> MainsTest:
    return MainsTest(
        id=row.id,
        source_point=row.source_point,
        property_id=row.property_id,
        survey_id=row.survey_id,
        ambient_temp_c=row.ambient_temp_c,
        notes=row.notes,
        created_at=row.created_at,
        created_by=row.created_by,
    )


def to_device_record(row: MainsTestDeviceRow) -> MainsTestDevice:
    return MainsTestDevice(
        id=row.id,
        test_id=row.test_id,
        label=row.label,
        location=row.location or "",
        sensor_type=SensorType(row.sensor_type),
        calibration_profile_id=row.calibration_profile_id,
        notes=row.notes,
    )


def to_step_record(row: MainsTestStepRow) -> MainsTestStep:
    return MainsTestStep(
        id=row.id,
        test_id=row.test_id,
        index=row.index,
        label=row.label,
        outlet_count=row.outlet_count,
        valve_state=row.valve_state,
        duration_seconds=row.duration_seconds,
        target_flow_lpm=row.target_flow_lpm,
        notes=row.notes,
    )


def to_observation_record(row: MainsTestObservationRow) -> MainsTestObservation:
    return MainsTestObservation(
        id=row.id,
        test_id=row.test_id,
        step_id=row.step_id,
        device_id=row.device_id,
        pressure_bar=row.pressure_bar,
        flow_lpm=row.flow_lpm,
        water_temp_c=row.water_temp_c,
        quality_flags=list(row.quality_flags or []),
        method=ObservationMethod(row.method),
        timestamp=row.timestamp,
        entered_by=row.entered_by,
    )


# =========================================
# Dependency for FastAPI
# =========================================

def get_db():
    """
    Dependency that provides a database session.

    Usage in FastAPI:
        @router.get("/{test_id}")
        def get_test(test_id: str, db: Session = Depends(get_db)):
            return DatabaseManager(db).get_test(test_id)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_session():
    """
    Context manager for database sessions.

    Usage:
        with get_db_session() as db:
            db.execute(query)
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# =========================================
# Database Operations
# =========================================

class DatabaseManager:
    """
    Manager class for database operations.

    Provides high-level methods for the operations used by the API
    endpoints. Write failures are logged, rolled back and re-raised.
    """

    def __init__(self, session: Optional[Session] = None):
        """
        Initialize with optional session.

        Args:
            session: SQLAlchemy session (creates new if None)
        """
        self._session = session
        self._owns_session = session is None

    @property
    def session(self) -> Session:
        """Get or create session."""
        if self._session is None:
            self._session = SessionLocal()
        return self._session

    def close(self):
        """Close session if we own it."""
        if self._owns_session and self._session:
            self._session.close()
            self._session = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.session.rollback()
        self.close()

    def _commit(self, action: str) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to {action}: {e}")
            self.session.rollback()
            raise

    # =========================================
    # Health Check Operations
    # =========================================

    def check_connection(self) -> bool:
        """Check if database connection is working."""
        try:
            self.session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database connection check failed: {e}")
            return False

    def count_tests(self) -> int:
        return self.session.query(func.count(MainsTestRow.id)).scalar() or 0

    # =========================================
    # Test Operations
    # =========================================

    def create_test(
        self,
        test_data: Dict[str, Any],
        devices: List[Dict[str, Any]]
    ) -> MainsTestRow:
        """
        Create a test together with its devices.

        Args:
            test_data: Column values for the test
            devices: Column values for each device

        Returns:
            The stored test row
        """
        row = MainsTestRow(**test_data)
        self.session.add(row)
        self.session.flush()

        for device in devices:
            self.session.add(MainsTestDeviceRow(test_id=row.id, **device))

        self._commit("create mains test")
        self.session.refresh(row)
        logger.info(f"Created mains test {row.id} with {len(devices)} devices")
        return row

    def get_test(self, test_id: str) -> Optional[MainsTestRow]:
        return self.session.get(MainsTestRow, test_id)

    def get_tests_for_property(self, property_id: int) -> List[MainsTestRow]:
        """Get all tests for a property, newest first."""
        return (
            self.session.query(MainsTestRow)
            .filter(MainsTestRow.property_id == property_id)
            .order_by(MainsTestRow.created_at.desc())
            .all()
        )

    def delete_test(self, test_id: str) -> bool:
        """
        Delete a test and everything recorded for it.

        Returns:
            False if the test does not exist
        """
        row = self.get_test(test_id)
        if row is None:
            return False

        # Children first so foreign keys hold on every backend
        for model in (
            MainsTestObservationRow,
            MainsTestAnalysisRow,
            MainsTestStepRow,
            MainsTestDeviceRow,
        ):
            self.session.query(model).filter(model.test_id == test_id).delete(synchronize_session=False)
        self.session.delete(row)

        self._commit("delete mains test")
        logger.info(f"Deleted mains test {test_id}")
        return True

    # =========================================
    # Step Operations
    # =========================================

    def get_step_indices(self, test_id: str) -> List[int]:
        rows = self.session.query(MainsTestStepRow.index).filter(MainsTestStepRow.test_id == test_id)
        return [r[0] for r in rows]

    def get_step(self, test_id: str, step_id: str) -> Optional[MainsTestStepRow]:
        return (
            self.session.query(MainsTestStepRow)
            .filter(MainsTestStepRow.id == step_id, MainsTestStepRow.test_id == test_id)
            .first()
        )

    def add_steps(self, test_id: str, steps: List[Dict[str, Any]]) -> List[MainsTestStepRow]:
        """
        Add steps to a test.

        Raises:
            SQLAlchemyError: On write failure (including a duplicate index)
        """
        rows = [MainsTestStepRow(test_id=test_id, **s) for s in steps]
        self.session.add_all(rows)
        self._commit("add mains test steps")
        for row in rows:
            self.session.refresh(row)
        return sorted(rows, key=lambda r: r.index)

    # =========================================
    # Device and Observation Operations
    # =========================================

    def get_device(self, test_id: str, device_id: str) -> Optional[MainsTestDeviceRow]:
        return (
            self.session.query(MainsTestDeviceRow)
            .filter(MainsTestDeviceRow.id == device_id, MainsTestDeviceRow.test_id == test_id)
            .first()
        )

    def add_observation(self, test_id: str, data: Dict[str, Any]) -> MainsTestObservationRow:
        """Add one observation; it is ordered after every earlier one of the test."""
        last = (
            self.session.query(func.max(MainsTestObservationRow.sequence))
            .filter(MainsTestObservationRow.test_id == test_id)
            .scalar()
        )
        values = {k: v for k, v in data.items() if v is not None}
        row = MainsTestObservationRow(test_id=test_id, sequence=(last or 0) + 1, **values)
        self.session.add(row)
        self._commit("add mains test observation")
        self.session.refresh(row)
        return row

    # =========================================
    # Analysis Operations
    # =========================================

    def load_records(
        self,
        test_id: str
    ) -> Optional[Tuple[MainsTest, List[MainsTestDevice], List[MainsTestStep], List[MainsTestObservation]]]:
        """
        Load a test as analysis records.

        Steps are ordered by index; observations in entry order.

        Returns:
            (test, devices, steps, observations) or None if not found
        """
        row = self.get_test(test_id)
        if row is None:
            return None

        return (
            to_test_record(row),
            [to_device_record(d) for d in row.devices],
            [to_step_record(s) for s in row.steps],
            [to_observation_record(o) for o in row.observations],
        )

    def save_analysis(self, results: MainsTestResults) -> MainsTestAnalysisRow:
        """Store (or replace) the cached analysis for a test."""
        payload = results.to_dict()
        row = (
            self.session.query(MainsTestAnalysisRow)
            .filter(MainsTestAnalysisRow.test_id == results.test_id)
            .first()
        )
        if row is None:
            row = MainsTestAnalysisRow(test_id=results.test_id)
            self.session.add(row)

        row.analysis_version = ANALYSIS_VERSION
        row.computed_at = results.computed_at
        row.static_pressure_bar = results.static_pressure_bar
        row.dynamic_pressure_at_steps = payload["dynamic_pressure_at_steps"]
        row.max_flow_observed_lpm = results.max_flow_observed_lpm
        row.pressure_drop_per_outlet = results.pressure_drop_per_outlet
        row.supply_curve_points = payload["supply_curve_points"]
        row.risk_flags = payload["risk_flags"]
        row.confidence = payload["confidence"]

        self._commit("save mains test analysis")
        return row

    # =========================================
    # Bulk Operations
    # =========================================

    def save_records(
        self,
        test: MainsTest,
        devices: List[MainsTestDevice],
        steps: List[MainsTestStep],
        observations: List[MainsTestObservation]
    ) -> MainsTestRow:
        """Persist a complete test (e.g. a generated one) in one transaction."""
        row = MainsTestRow(
            id=test.id,
            property_id=test.property_id,
            survey_id=test.survey_id,
            source_point=test.source_point,
            ambient_temp_c=test.ambient_temp_c,
            notes=test.notes,
            created_at=test.created_at or _utcnow(),
            created_by=test.created_by,
        )
        self.session.add(row)

        for d in devices:
            self.session.add(MainsTestDeviceRow(
                id=d.id, test_id=test.id, label=d.label, location=d.location,
                sensor_type=d.sensor_type.value,
                calibration_profile_id=d.calibration_profile_id, notes=d.notes,
            ))
        for s in steps:
            self.session.add(MainsTestStepRow(
                id=s.id, test_id=test.id, index=s.index, label=s.label,
                outlet_count=s.outlet_count, valve_state=s.valve_state,
                duration_seconds=s.duration_seconds, target_flow_lpm=s.target_flow_lpm,
                notes=s.notes,
            ))
        for seq, o in enumerate(observations, start=1):
            self.session.add(MainsTestObservationRow(
                id=o.id, test_id=test.id, step_id=o.step_id, device_id=o.device_id,
                sequence=seq, timestamp=o.timestamp or _utcnow(),
                pressure_bar=o.pressure_bar, flow_lpm=o.flow_lpm,
                water_temp_c=o.water_temp_c, quality_flags=list(o.quality_flags),
                method=o.method.value, entered_by=o.entered_by,
            ))

        self._commit("save mains test records")
        logger.info(f"Saved mains test {test.id}: {len(steps)} steps, {len(observations)} observations")
        return row


# =========================================
# Utility Functions
# =========================================

def check_database_health() -> Dict[str, Any]:
    """
    Check database health and return status.

    Returns:
        Dictionary with health status information
    """
    try:
        with get_db_session() as db:
            db.execute(text("SELECT 1"))
            test_count = db.query(func.count(MainsTestRow.id)).scalar() or 0

            return {
                "status": "healthy",
                "connected": True,
                "backend": engine.dialect.name,
                "test_count": test_count,
            }

    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return {
            "status": "unhealthy",
            "connected": False,
            "error": str(e)
        }


def init_database():
    """
    Create database tables if they don't exist.

    This is called on application startup to ensure
    the database schema is ready.
    """
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables verified")
    except SQLAlchemyError as e:
        logger.error(f"Database initialization failed: {e}")
        raise
