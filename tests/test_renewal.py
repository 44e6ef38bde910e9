from datetime import date

from sow_tracker.renewal import ContractStatus, contract_status, is_expired, is_renewal_due

AS_OF = date(2024, 6, 15)


def test_ending_inside_lookahead_is_due(make_contract):
    contract = make_contract(end_date=date(2024, 9, 14))
    assert is_renewal_due(contract, AS_OF)
    assert contract_status(contract, AS_OF) is ContractStatus.renewal_due


def test_lookahead_boundary(make_contract):
    assert is_renewal_due(make_contract(end_date=date(2024, 9, 15)), AS_OF)
    assert not is_renewal_due(make_contract(end_date=date(2024, 9, 16)), AS_OF)


def test_expired_contract_is_not_due(make_contract):
    contract = make_contract(end_date=date(2024, 6, 14))
    assert is_expired(contract, AS_OF)
    assert not is_renewal_due(contract, AS_OF)
    assert contract_status(contract, AS_OF) is ContractStatus.expired


def test_contract_ending_today_is_still_active_window(make_contract):
    contract = make_contract(end_date=AS_OF)
    assert not is_expired(contract, AS_OF)
    assert is_renewal_due(contract, AS_OF)


def test_long_running_contract_is_active(contract):
    assert contract_status(contract, date(2024, 2, 1)) is ContractStatus.active
    assert ContractStatus.active.value == "ACTIVE"
