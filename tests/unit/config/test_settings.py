# nosec B101


from datetime import timedelta

import pytest

from config.settings import (
    Settings,
    load_settings,
    parse_duration,
    parse_listen_address,
    read_config_file,
    render_default_config,
    validate_settings,
)
from domain.exceptions.errors import ConfigError
from domain.models.events import RunMode


ENV_VARS = (
    'CHIGUI_TELEGRAM_TOKEN',
    'CHIGUI_WEBHOOK_URL',
    'CHIGUI_WEBHOOK_LISTEN_ADDR',
    'CHIGUI_WEBHOOK_SECRET_TOKEN',
    'CHIGUI_FXRATES_URL',
    'CHIGUI_FXRATES_TIMEOUT',
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's .env out of the picture
    monkeypatch.chdir(tmp_path)


def _settings(**overrides):
    values = {'TELEGRAM_TOKEN': 'token'}
    values.update(overrides)
    return Settings(**values)


@pytest.mark.parametrize('value, expected', [
    ('10s', timedelta(seconds=10)),
    ('1m30s', timedelta(seconds=90)),
    ('500ms', timedelta(milliseconds=500)),
    ('1h', timedelta(hours=1)),
    ('0', timedelta(0)),
    ('15', timedelta(seconds=15)),
    (2.5, timedelta(seconds=2.5)),
    ('-1s', timedelta(seconds=-1)),
])
def test_parse_duration(value, expected):
    assert parse_duration(value) == expected


@pytest.mark.parametrize('value', [
    '', 'ten seconds', '10x', 's', '1s garbage', None, True,
    '1e400', 'inf', 'nan', '99999999999999h', float('inf'), 10**20,
])
def test_parse_duration_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_duration(value)


def test_parse_listen_address():
    assert parse_listen_address('0.0.0.0:8080') == ('0.0.0.0', 8080)
    assert parse_listen_address(':9000') == ('', 9000)
    assert parse_listen_address('[::1]:443') == ('::1', 443)


@pytest.mark.parametrize('address', ['localhost', 'host:port', 'a:b:80', 'host:70000'])
def test_parse_listen_address_rejects_invalid(address):
    with pytest.raises(ValueError):
        parse_listen_address(address)


def test_defaults():
    settings = Settings()

    assert settings.WEBHOOK_LISTEN_ADDR == '0.0.0.0:8080'
    assert settings.FXRATES_URL == 'https://api.ojoporciento.com'
    assert settings.FXRATES_TIMEOUT == timedelta(seconds=10)
    assert settings.run_mode is RunMode.POLLING


def test_settings_are_immutable():
    settings = _settings()

    with pytest.raises(Exception):
        settings.TELEGRAM_TOKEN = 'other'


@pytest.mark.parametrize('url, mode', [
    ('', RunMode.POLLING),
    ('   ', RunMode.POLLING),
    ('https://bot.example.com/hook', RunMode.WEBHOOK),
])
def test_run_mode_follows_webhook_url(url, mode):
    assert _settings(WEBHOOK_URL=url).run_mode is mode


@pytest.mark.parametrize('url, path', [
    ('https://bot.example.com', '/'),
    ('https://bot.example.com/', '/'),
    ('https://bot.example.com/telegram/hook', '/telegram/hook'),
])
def test_webhook_path(url, path):
    assert _settings(WEBHOOK_URL=url).webhook_path == path


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv('CHIGUI_TELEGRAM_TOKEN', 'from-env')
    monkeypatch.setenv('CHIGUI_FXRATES_TIMEOUT', '1m30s')

    settings = load_settings()

    assert settings.TELEGRAM_TOKEN == 'from-env'
    assert settings.FXRATES_TIMEOUT == timedelta(seconds=90)


def test_dotenv_file_is_read(tmp_path):
    (tmp_path / '.env').write_text('CHIGUI_TELEGRAM_TOKEN=from-dotenv\n')

    assert load_settings().TELEGRAM_TOKEN == 'from-dotenv'


def test_unparsable_timeout_fails(monkeypatch):
    monkeypatch.setenv('CHIGUI_FXRATES_TIMEOUT', 'soon')

    with pytest.raises(ConfigError):
        load_settings()


@pytest.mark.parametrize('value', ['1e400', 'inf', '99999999999999h'])
def test_out_of_range_timeout_fails_as_config_error(monkeypatch, value):
    monkeypatch.setenv('CHIGUI_FXRATES_TIMEOUT', value)

    with pytest.raises(ConfigError):
        load_settings()


def test_config_file_is_flattened(tmp_path):
    path = tmp_path / 'config.toml'
    path.write_text(
        'listen_address = "127.0.0.1:9090"\n'
        '[telegram]\n'
        'token = "file-token"\n'
        'webhook_url = "https://bot.example.com/hook"\n'
        'webhook_secret_token = "s3cret"\n'
        '[fxrates]\n'
        'base_url = "http://localhost:8000"\n'
        'timeout = "5s"\n'
    )

    assert read_config_file(path) == {
        'WEBHOOK_LISTEN_ADDR': '127.0.0.1:9090',
        'TELEGRAM_TOKEN': 'file-token',
        'WEBHOOK_URL': 'https://bot.example.com/hook',
        'WEBHOOK_SECRET_TOKEN': 's3cret',
        'FXRATES_URL': 'http://localhost:8000',
        'FXRATES_TIMEOUT': '5s',
    }

    settings = load_settings(config_path=path)
    assert settings.FXRATES_TIMEOUT == timedelta(seconds=5)
    assert settings.run_mode is RunMode.WEBHOOK


def test_environment_wins_over_config_file(tmp_path, monkeypatch):
    path = tmp_path / 'config.toml'
    path.write_text('[telegram]\ntoken = "file-token"\n')
    monkeypatch.setenv('CHIGUI_TELEGRAM_TOKEN', 'env-token')

    assert load_settings(config_path=path).TELEGRAM_TOKEN == 'env-token'


def test_listen_flag_wins_over_everything(tmp_path, monkeypatch):
    monkeypatch.setenv('CHIGUI_WEBHOOK_LISTEN_ADDR', '127.0.0.1:1')

    settings = load_settings(listen_address='127.0.0.1:2')

    assert settings.WEBHOOK_LISTEN_ADDR == '127.0.0.1:2'


def test_unreadable_config_file(tmp_path):
    with pytest.raises(ConfigError) as exc_info:
        load_settings(config_path=tmp_path / 'missing.toml')

    assert 'unable to read server config' in str(exc_info.value)


def test_valid_polling_settings_pass():
    validate_settings(_settings())


def test_valid_webhook_settings_pass():
    validate_settings(_settings(WEBHOOK_URL='https://bot.example.com/hook', WEBHOOK_SECRET_TOKEN='s3cret'))


@pytest.mark.parametrize('overrides, message', [
    ({'TELEGRAM_TOKEN': ''}, 'missing telegram token'),
    ({'WEBHOOK_LISTEN_ADDR': ''}, 'missing listen address'),
    ({'WEBHOOK_LISTEN_ADDR': 'nope'}, 'invalid listen address'),
    ({'FXRATES_URL': ''}, 'missing fxrates base url'),
    ({'FXRATES_URL': 'not a url'}, 'invalid fxrates base url'),
    ({'FXRATES_URL': 'ftp://fx.example.com'}, 'fxrates base url must use http or https'),
    ({'FXRATES_TIMEOUT': '0s'}, 'fxrates timeout must be positive'),
    ({'WEBHOOK_URL': 'bot.example.com/hook', 'WEBHOOK_SECRET_TOKEN': 's'}, 'invalid webhook url'),
    ({'WEBHOOK_URL': 'http://bot.example.com/hook', 'WEBHOOK_SECRET_TOKEN': 's'}, 'webhook url must use https'),
    ({'WEBHOOK_URL': 'https://bot.example.com/hook'}, 'missing webhook secret token'),
])
def test_validation_errors(overrides, message):
    with pytest.raises(ConfigError) as exc_info:
        validate_settings(_settings(**overrides))

    assert str(exc_info.value).startswith(message)


def test_render_default_config_round_trips(tmp_path):
    path = tmp_path / 'config.toml'
    path.write_text(render_default_config())

    values = read_config_file(path)

    assert values['WEBHOOK_LISTEN_ADDR'] == '0.0.0.0:8080'
    assert values['FXRATES_TIMEOUT'] == '10s'
    assert values['TELEGRAM_TOKEN'] == ''
