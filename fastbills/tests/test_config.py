import os

from fastbills.config import TAX_RATE, Settings


def test_defaults(monkeypatch, tmp_path):
    for name in list(os.environ):
        if name.startswith('FASTBILLS_'):
            monkeypatch.delenv(name)

    settings = Settings.from_env(str(tmp_path))
    assert settings.data_dir == os.path.join(str(tmp_path), 'data')
    assert settings.backup_dir == os.path.join(settings.data_dir, 'backups')
    assert settings.async_writes is True
    assert settings.production is False
    assert settings.max_backups == 7
    assert settings.credentials == 'plaintext'
    assert TAX_RATE == 0.10


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv('FASTBILLS_DATA_DIR', str(tmp_path / 'store'))
    monkeypatch.setenv('FASTBILLS_ASYNC_WRITES', '0')
    monkeypatch.setenv('FASTBILLS_PRODUCTION', 'yes')
    monkeypatch.setenv('FASTBILLS_SECRET_KEY', 'k')
    monkeypatch.setenv('FASTBILLS_MAX_BACKUPS', 'many')
    monkeypatch.setenv('FASTBILLS_CREDENTIALS', ' Hashed ')

    settings = Settings.from_env()
    assert settings.data_dir == str(tmp_path / 'store')
    assert settings.async_writes is False
    assert settings.production is True
    assert settings.secret_key == 'k'
    assert settings.max_backups == 7
    assert settings.credentials == 'hashed'
