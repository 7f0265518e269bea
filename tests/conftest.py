"""
Test Configuration Module
"""

import pytest
import pytest_asyncio
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from crud_scaffold.db.models import Base
from sample_entities import Address, Customer, Order


# Use in-memory database for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def async_engine():
    """Create async database engine for testing"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Clean up
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for testing"""
    async_session = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest_asyncio.fixture
async def twelve_customers(db_session) -> list[Customer]:
    """Customers 1..12, every third one gold"""
    customers = [
        Customer(
            name=f"Customer {i:02d}",
            email=f"c{i}@example.com",
            tier="gold" if i % 3 == 0 else "basic",
        )
        for i in range(1, 13)
    ]
    db_session.add_all(customers)
    await db_session.commit()
    # Searches must load from the database, not reuse seeded instances
    db_session.expunge_all()
    return customers


@pytest_asyncio.fixture
async def named_customers(db_session) -> dict[str, Customer]:
    """Ana, Juan and Pedro with addresses and orders"""
    downtown = Address(street="1 Main St", city="Lima")
    uptown = Address(street="9 Hill Rd", city="Cusco")
    ana = Customer(name="Ana", tier="gold", address=uptown)
    juan = Customer(name="Juan", address=downtown)
    pedro = Customer(name="Pedro")
    ana.orders = [Order(product="Laptop", quantity=1), Order(product="Mouse", quantity=2)]
    juan.orders = [Order(product="Keyboard", quantity=1)]
    db_session.add_all([ana, juan, pedro])
    await db_session.commit()
    result = {"Ana": ana, "Juan": juan, "Pedro": pedro}
    db_session.expunge_all()
    return result
