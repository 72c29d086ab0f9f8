import json
import os

import pytest

from fastbills.errors import InvalidBackupFormat, PermissionDenied
from fastbills.repositories import KEY_BILLS, KEY_PRODUCTS


def sell(container, product_id='1', quantity=1):
    container.cart_service.add_to_cart(product_id, quantity)
    return container.billing_service.generate_bill(payment_method='card')


def test_export_document(container, as_manager):
    bill = sell(container)
    doc = container.backup_service.export_backup()

    assert doc['version'] == '1.0.0'
    assert isinstance(doc['timestamp'], int)
    assert len(doc['products']) == 15
    assert doc['bills'][0]['id'] == bill.id
    assert [u['name'] for u in doc['users']] == ['manager', 'cashier', 'cashier1', 'cashier2']


def test_restore_replaces_products_and_bills_only(container, as_manager, storage):
    backups = container.backup_service
    doc = backups.export_backup()
    doc['products'] = doc['products'][:2]
    doc['users'] = [{'id': '99', 'name': 'intruder', 'role': 'manager', 'password': 'x'}]

    sell(container)
    restored = backups.restore_backup(doc)

    assert restored == {'products': 2, 'bills': 0}
    assert len(container.catalog_service.list_products()) == 2
    assert container.billing_service.list_bills() == []
    assert 'intruder' not in [u.name for u in container.state.users]
    assert len(storage.load(KEY_PRODUCTS)) == 2
    assert storage.load(KEY_BILLS) == []


def test_restore_requires_manager(container, as_cashier):
    doc = container.backup_service.export_backup()
    with pytest.raises(PermissionDenied):
        container.backup_service.restore_backup(doc)


@pytest.mark.parametrize('doc', [
    None,
    [],
    {'products': [], 'bills': []},
    {'products': [], 'version': '1.0.0'},
    {'bills': [], 'version': '1.0.0'},
    {'products': 'x', 'bills': [], 'version': '1.0.0'},
    {'products': [{'price': 'abc'}], 'bills': [], 'version': '1.0.0'},
])
def test_restore_rejects_invalid_documents(container, as_manager, doc):
    with pytest.raises(InvalidBackupFormat):
        container.backup_service.restore_backup(doc)
    assert len(container.catalog_service.list_products()) == 15


def test_write_backup_file(container, as_manager, settings):
    path = container.backup_service.write_backup()

    name = os.path.basename(path)
    assert name.startswith('fastbills_backup_') and name.endswith('.json')
    with open(path, encoding='utf-8') as f:
        assert json.load(f)['version'] == '1.0.0'

    assert container.backup_service.restore_backup_file(path) == {'products': 15, 'bills': 0}


def test_restore_backup_file_not_json(container, as_manager, tmp_path):
    bad = tmp_path / 'broken.json'
    bad.write_text('not json', encoding='utf-8')
    with pytest.raises(InvalidBackupFormat):
        container.backup_service.restore_backup_file(str(bad))


def test_rotation_keeps_newest(container, settings):
    os.makedirs(settings.backup_dir)
    for day in range(1, 6):
        open(os.path.join(settings.backup_dir, f'fastbills_backup_2024-01-0{day}.json'), 'w').close()
    open(os.path.join(settings.backup_dir, 'fastbills_backup_notes.json'), 'w').close()

    deleted = container.backup_service.rotate_backups()

    assert deleted == 2
    assert container.backup_service.list_backups() == [
        'fastbills_backup_2024-01-05.json',
        'fastbills_backup_2024-01-04.json',
        'fastbills_backup_2024-01-03.json',
    ]
    assert os.path.exists(os.path.join(settings.backup_dir, 'fastbills_backup_notes.json'))
