"""Tests for shared.diagnostics helpers."""

import logging

import psutil

import shared.diagnostics as diagnostics


def test_get_memory_info_direct():
    info = diagnostics.get_memory_info()
    assert 'process_rss_mb' in info
    assert info['process_rss_mb'] > 0


def test_get_thread_info_direct():
    info = diagnostics.get_thread_info()
    assert info['active_count'] >= 1
    assert 'MainThread' in info['thread_names']


def test_get_memory_info_psutil_failure(monkeypatch):
    def boom():
        raise psutil.AccessDenied()

    monkeypatch.setattr(diagnostics.psutil, 'Process', boom)
    info = diagnostics.get_memory_info()
    assert 'error' in info


def test_get_thread_info_psutil_failure(monkeypatch):
    def boom():
        raise psutil.AccessDenied()

    monkeypatch.setattr(diagnostics.psutil, 'Process', boom)
    info = diagnostics.get_thread_info()
    assert 'system_threads' not in info
    assert info['active_count'] >= 1


def test_log_memory_usage(caplog):
    with caplog.at_level(logging.INFO, logger='shared.diagnostics'):
        diagnostics.log_memory_usage('after render')
    assert 'Memory usage (after render)' in caplog.text


def test_log_thread_status(caplog):
    with caplog.at_level(logging.INFO, logger='shared.diagnostics'):
        diagnostics.log_thread_status()
    assert 'Thread status:' in caplog.text
