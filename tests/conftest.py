"""Shared fixtures: instant sleeps and deterministic jitter."""

import asyncio
import random

import pytest


@pytest.fixture
def sleeps(monkeypatch):
    """Replace asyncio.sleep with a recorder that returns immediately"""
    recorded = []
    real_sleep = asyncio.sleep

    async def fake_sleep(delay, result=None):
        recorded.append(delay)
        await real_sleep(0)
        return result

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return recorded


@pytest.fixture
def no_jitter(monkeypatch):
    monkeypatch.setattr(random, "random", lambda: 0.0)
