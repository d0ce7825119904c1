import subprocess
import pytest
from unittest.mock import patch, MagicMock
from devsetup.errors import TrustRegistrationError
from devsetup.known_hosts import add_to_known_hosts, is_known_host


def _completed(returncode=0, stdout='', stderr=''):
    return MagicMock(returncode=returncode, stdout=stdout, stderr=stderr)


def test_is_known_host_without_file(tmp_path):
    """Missing known_hosts should not call ssh-keygen"""
    with patch('subprocess.run') as mock_run:
        assert is_known_host('github.com', tmp_path / 'known_hosts') is False
        mock_run.assert_not_called()


def test_add_to_known_hosts_appends_scan(tmp_path):
    """Should append hashed ssh-keyscan output"""
    known_hosts = tmp_path / 'known_hosts'
    scan = '|1|abc= ssh-ed25519 AAAAC3Nza\n|1|def= ecdsa-sha2-nistp256 AAAAE2Vj\n'

    with patch('subprocess.run', return_value=_completed(stdout=scan)) as mock_run:
        assert add_to_known_hosts('github.com', known_hosts) is True

    cmd = mock_run.call_args[0][0]
    assert cmd[:2] == ['ssh-keyscan', '-H']
    assert cmd[-1] == 'github.com'
    assert known_hosts.read_text() == scan


def test_add_to_known_hosts_skips_known(tmp_path):
    """Already known hosts should not be scanned again"""
    known_hosts = tmp_path / 'known_hosts'
    known_hosts.write_text('|1|abc= ssh-ed25519 AAAA\n')

    with patch('subprocess.run', return_value=_completed(returncode=0)) as mock_run:
        assert add_to_known_hosts('github.com', known_hosts) is False

    assert mock_run.call_count == 1
    assert mock_run.call_args[0][0][:2] == ['ssh-keygen', '-F']
    assert known_hosts.read_text() == '|1|abc= ssh-ed25519 AAAA\n'


def test_add_to_known_hosts_empty_scan_fails(tmp_path):
    """Unreachable host should raise"""
    with patch('subprocess.run', return_value=_completed(stderr='connect refused')):
        with pytest.raises(TrustRegistrationError, match='No host keys'):
            add_to_known_hosts('nowhere.invalid', tmp_path / 'known_hosts')


def test_add_to_known_hosts_timeout(tmp_path):
    with patch('subprocess.run', side_effect=subprocess.TimeoutExpired('ssh-keyscan', 15)):
        with pytest.raises(TrustRegistrationError, match='Timed out') as exc_info:
            add_to_known_hosts('github.com', tmp_path / 'known_hosts')
    assert exc_info.value.host == 'github.com'


def test_add_to_known_hosts_missing_tools(tmp_path):
    with patch('subprocess.run', side_effect=FileNotFoundError('ssh-keyscan')):
        with pytest.raises(TrustRegistrationError, match='not found'):
            add_to_known_hosts('github.com', tmp_path / 'known_hosts')
