import json
import os

import pytest

from statement_parser.categories import (
    CATEGORY_OPTIONS,
    suggest_category,
    validate_name,
)
from statement_parser.errors import LearningStoreError
from statement_parser.learning import LearningStore, get_data_dir
from statement_parser.models import TransactionType

# ---- Category suggestion -----------------------------------------------------


def test_learned_category_wins_over_rules():
    learned = {"peppes pizza": "other-expense"}
    assert suggest_category("PEPPES PIZZA", TransactionType.EXPENSE, learned) == "other-expense"


@pytest.mark.parametrize(
    ("merchant", "type_", "expected"),
    [
        ("UBER TRIP", TransactionType.EXPENSE, "transport"),
        ("PEPPES PIZZA", TransactionType.EXPENSE, "dining"),
        ("CITY SUPERMARKET", TransactionType.EXPENSE, "grocery"),
        ("NETFLIX.COM", TransactionType.EXPENSE, "entertainment"),
        ("KIWI LADE", TransactionType.EXPENSE, "other-expense"),
        ("FOOD AS", TransactionType.INCOME, "salary"),
        ("SPAREKONTO BSU", TransactionType.SAVINGS, "emergency-fund"),
    ],
)
def test_rule_and_default_suggestions(merchant, type_, expected):
    assert suggest_category(merchant, type_) == expected


def test_default_suggestions_are_valid_options():
    for type_ in TransactionType:
        assert suggest_category("UNKNOWN MERCHANT", type_) in CATEGORY_OPTIONS[type_]


def test_validate_name():
    assert validate_name("Dog & Cat").ok
    assert validate_name("home/garden").ok
    assert validate_name("   ").reason == "Name cannot be empty"
    assert not validate_name("x" * 41).ok
    assert not validate_name("my cat!").ok


# ---- Learning store ----------------------------------------------------------


def test_data_dir_comes_from_env(tmp_path):
    assert get_data_dir() == (tmp_path / "data").resolve()
    assert LearningStore().path == (tmp_path / "data" / "category_learning.json").resolve()


def test_learn_save_and_reload(tmp_path):
    store = LearningStore(tmp_path)
    assert store.categories == {}

    assert store.learn("Kiwi Lade", "Grocery") is True
    assert store.learn("KIWI  LADE", "grocery") is False
    assert store.dirty
    store.save()
    assert not store.dirty

    on_disk = json.loads((tmp_path / "category_learning.json").read_text("utf-8"))
    assert on_disk == {"schema_version": 1, "categories": {"kiwi lade": "grocery"}}
    assert not (tmp_path / "category_learning.json.tmp").exists()

    reloaded = LearningStore(tmp_path)
    assert reloaded.get("KIWI LADE") == "grocery"


def test_save_creates_missing_data_dir(tmp_path):
    store = LearningStore(tmp_path / "nested" / "dir")
    store.learn("Rema 1000", "grocery")
    store.save()
    assert os.path.exists(tmp_path / "nested" / "dir" / "category_learning.json")


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        json.dumps({"schema_version": 1, "categories": {"kiwi": 3}}),
        json.dumps({"schema_version": 99, "categories": {}}),
    ],
)
def test_corrupt_learning_file_raises(tmp_path, content):
    (tmp_path / "category_learning.json").write_text(content, "utf-8")
    with pytest.raises(LearningStoreError):
        LearningStore(tmp_path).get("kiwi")


def test_learn_rejects_empty_values(tmp_path):
    with pytest.raises(ValueError):
        LearningStore(tmp_path).learn("  ", "grocery")
