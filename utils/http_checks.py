import logging
import warnings

import requests

_log = logging.getLogger(__name__)


def http_status(url, host=None, auth=None, timeout=5, verify=True):
    '''HTTP status code of a GET request, 0 when the connection fails.
    Redirects are not followed so routing answers (401/404) stay visible.
    verify=False is for probing the local proxy, whose certificate is issued
    for the public domain and not for localhost.
    '''
    headers = {'Host': host} if host else {}
    try:
        with warnings.catch_warnings():
            if not verify:
                warnings.simplefilter('ignore')
            response = requests.get(url, headers=headers, auth=auth, timeout=timeout,
                                    allow_redirects=False, verify=verify)
    except requests.exceptions.RequestException as e:
        _log.debug("GET %s failed: %s", url, e)
        return 0
    return response.status_code


def http_text(url, host=None, timeout=5, verify=True):
    '''Response body of a GET request, empty string on failure'''
    headers = {'Host': host} if host else {}
    try:
        with warnings.catch_warnings():
            if not verify:
                warnings.simplefilter('ignore')
            response = requests.get(url, headers=headers, timeout=timeout,
                                    allow_redirects=False, verify=verify)
    except requests.exceptions.RequestException as e:
        _log.debug("GET %s failed: %s", url, e)
        return ''
    return response.text
