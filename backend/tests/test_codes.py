"""Tests for sequential code generation."""
import threading
from concurrent.futures import ThreadPoolExecutor
import pytest
from conftest import make_deposit, make_transaction
from unifypay.errors import ConflictError
from unifypay.services.codes import format_code, next_code, prefix_for


def test_first_code_per_prefix():
    assert next_code("IN") == "IN001"
    assert next_code("EX", None) == "EX001"
    assert next_code("DE", "") == "DE001"


def test_next_code_increments_suffix():
    assert next_code("IN", "IN005") == "IN006"
    assert next_code("EX", "EX099") == "EX100"


def test_format_code_pads_to_three_digits():
    assert format_code("DE", 7) == "DE007"
    assert format_code("DE", 999) == "DE999"
    assert format_code("DE", 1000) == "DE1000"


def test_prefix_for_categories():
    assert prefix_for("income") == "IN"
    assert prefix_for("expense") == "EX"
    assert prefix_for("deposit") == "DE"
    with pytest.raises(ValueError):
        prefix_for("refund")


def test_income_and_expense_sequences_are_independent(transaction_store):
    codes = [
        transaction_store.add_transaction(make_transaction(direction="income")).code,
        transaction_store.add_transaction(make_transaction(direction="expense")).code,
        transaction_store.add_transaction(make_transaction(direction="income")).code,
        transaction_store.add_transaction(make_transaction(direction="expense")).code,
    ]
    assert codes == ["IN001", "EX001", "IN002", "EX002"]


def test_deposits_share_one_sequence_across_currencies(deposit_store):
    codes = [
        deposit_store.add_deposit(make_deposit(currency=currency)).code
        for currency in ("USD", "PEN", "EUR")
    ]
    assert codes == ["DE001", "DE002", "DE003"]


def test_generated_code_follows_highest_supplied_code(transaction_store):
    transaction_store.add_transaction(make_transaction(code="IN041"))
    generated = transaction_store.add_transaction(make_transaction())
    assert generated.code == "IN042"


def test_lower_supplied_code_does_not_rewind_sequence(transaction_store):
    transaction_store.add_transaction(make_transaction())  # IN001
    transaction_store.add_transaction(make_transaction(code="IN010"))
    transaction_store.add_transaction(make_transaction(code="IN005"))
    assert transaction_store.add_transaction(make_transaction()).code == "IN011"


def test_codes_of_deleted_records_are_not_reused(transaction_store):
    transaction_store.add_transaction(make_transaction())
    last = transaction_store.add_transaction(make_transaction())
    assert last.code == "IN002"
    transaction_store.delete_transaction(last.id)
    assert transaction_store.add_transaction(make_transaction()).code == "IN003"


def test_sequence_continues_past_999(transaction_store):
    transaction_store.add_transaction(make_transaction(code="IN999"))
    assert transaction_store.add_transaction(make_transaction()).code == "IN1000"
    assert transaction_store.add_transaction(make_transaction()).code == "IN1001"


def test_duplicate_supplied_code_is_rejected(transaction_store):
    transaction_store.add_transaction(make_transaction(code="IN003"))
    with pytest.raises(ConflictError) as exc:
        transaction_store.add_transaction(make_transaction(code="IN003"))
    assert exc.value.field == "code"


def test_failed_insert_does_not_advance_sequence(transaction_store):
    transaction_store.add_transaction(make_transaction(id="fixed-id"))
    with pytest.raises(ConflictError):
        transaction_store.add_transaction(make_transaction(id="fixed-id"))
    assert transaction_store.add_transaction(make_transaction()).code == "IN002"


def test_concurrent_creations_get_distinct_sequential_codes(transaction_store):
    workers = 20
    barrier = threading.Barrier(workers)

    def create(_):
        barrier.wait()
        return transaction_store.add_transaction(make_transaction()).code

    with ThreadPoolExecutor(max_workers=workers) as pool:
        codes = list(pool.map(create, range(workers)))

    assert sorted(codes) == [format_code("IN", n) for n in range(1, workers + 1)]
    assert transaction_store.count_transactions() == workers


def test_concurrent_deposits_share_the_sequence(deposit_store):
    workers = 10
    barrier = threading.Barrier(workers)

    def create(currency):
        barrier.wait()
        return deposit_store.add_deposit(make_deposit(currency=currency)).code

    currencies = ["USD", "EUR", "PEN"] * 3 + ["USD"]
    with ThreadPoolExecutor(max_workers=workers) as pool:
        codes = list(pool.map(create, currencies))

    assert sorted(codes) == [f"DE{n:03d}" for n in range(1, workers + 1)]
