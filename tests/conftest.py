"""Configuração de fixtures para testes."""

import asyncio

import pytest
import pytest_asyncio

from swr_cache import SWRConfig, SWREngine, set_default_engine


class FakeClock:
    """Relógio manual para testes de expiração."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Relógio controlado pelo teste."""
    return FakeClock()


@pytest.fixture
def fast_config() -> SWRConfig:
    """Configuração com intervalos curtos para testes com tempo real."""
    return SWRConfig(
        dedupe_interval=0.05,
        error_retry_interval=0.02,
        error_retry_count=3,
    )


@pytest_asyncio.fixture
async def engine(fast_config: SWRConfig):
    """Engine isolado por teste."""
    swr_engine = SWREngine(fast_config)
    yield swr_engine
    await swr_engine.aclose()


@pytest.fixture(autouse=True)
def reset_default_engine():
    """Garante engine padrão novo em cada teste."""
    set_default_engine(None)
    yield
    set_default_engine(None)


@pytest.fixture
def wait_until():
    """Aguarda uma condição ficar verdadeira, com timeout."""

    async def wait(predicate, timeout: float = 1.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("Condição não atingida dentro do timeout")
            await asyncio.sleep(0.005)

    return wait


@pytest.fixture
def sample_data() -> dict:
    """Dados de exemplo para testes."""
    return {"user_id": 123, "name": "Test User", "active": True}
