import logging

import pytest

from easycart.utils.logging import configure_root, level_name


@pytest.fixture(autouse=True)
def _restore_levels():
    root = logging.getLogger()
    urllib3 = logging.getLogger("urllib3")
    saved = (root.level, urllib3.level)
    yield
    root.setLevel(saved[0])
    urllib3.setLevel(saved[1])


def test_default_level_applies_without_env():
    assert configure_root(logging.WARNING, env={}) == logging.WARNING
    assert logging.getLogger().level == logging.WARNING


def test_level_name_string_is_accepted():
    assert configure_root("debug", env={}) == logging.DEBUG


def test_env_level_wins_over_default():
    assert configure_root(logging.INFO, env={"EASYCART_LOG_LEVEL": "ERROR"}) == logging.ERROR


def test_debug_flag_enables_debug_but_quiets_urllib3():
    level = configure_root(logging.INFO, env={"EASYCART_DEBUG": "1"})
    assert level == logging.DEBUG
    assert logging.getLogger("urllib3").level == logging.INFO
    assert level_name(level) == "DEBUG"
