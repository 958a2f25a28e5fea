import pytest

from models import RolePermission, Subscription


def test_role_ordering():
    assert RolePermission.ADMIN.outranks(RolePermission.SERVICE_ACCOUNT)
    assert RolePermission.SERVICE_ACCOUNT.outranks(RolePermission.SERVICE_ACCOUNT)
    assert not RolePermission.BASIC.outranks(RolePermission.SERVICE_ACCOUNT)


@pytest.mark.parametrize('value, expected', [
    ('admin', RolePermission.ADMIN),
    ({'name': 'SERVICE_ACCOUNT'}, RolePermission.SERVICE_ACCOUNT),
    (RolePermission.BASIC, RolePermission.BASIC),
    (None, None),
])
def test_role_parse(value, expected):
    assert RolePermission.parse(value) is expected


def test_role_parse_unknown():
    with pytest.raises(ValueError):
        RolePermission.parse('superuser')


@pytest.mark.parametrize('execute_at, valid', [
    (1, True), (31, True), (0, False), (32, False), (True, False), ('5', False), (None, False),
])
def test_execution_date(execute_at, valid):
    assert Subscription.is_valid_execution_date(execute_at) is valid
