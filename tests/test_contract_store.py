import pytest

from sow_tracker.contract_store import InMemoryContractStore
from sow_tracker.exceptions import ContractNotFoundError


def test_save_get_and_list(contract):
    store = InMemoryContractStore()
    store.save(contract)
    assert store.get(contract.id) == contract
    assert store.list_all() == [contract]
    assert store.get("missing") is None


def test_save_replaces_existing(contract):
    store = InMemoryContractStore([contract])
    renamed = contract.model_copy(update={"project_name": "Renamed"})
    store.save(renamed)
    assert store.get(contract.id).project_name == "Renamed"
    assert len(store.list_all()) == 1


def test_delete(contract):
    store = InMemoryContractStore([contract])
    store.delete(contract.id)
    assert store.list_all() == []
    with pytest.raises(ContractNotFoundError) as excinfo:
        store.delete(contract.id)
    assert excinfo.value.contract_id == contract.id
    assert str(excinfo.value) == f"Contract not found: {contract.id}"


def test_subscribe_receives_snapshots(contract, make_contract):
    store = InMemoryContractStore([contract])
    snapshots = []
    unsubscribe = store.subscribe(snapshots.append)

    store.save(make_contract(id="sow-2"))
    store.delete(contract.id)
    unsubscribe()
    store.save(make_contract(id="sow-3"))

    assert [[c.id for c in snapshot] for snapshot in snapshots] == [
        ["sow-test"],
        ["sow-test", "sow-2"],
        ["sow-2"],
    ]
