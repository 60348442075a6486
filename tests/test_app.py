import config


def test_index_renders_form(client):
    r = client.get('/')
    assert r.status_code == 200
    assert b'<textarea' in r.data
    assert b'.co.in' in r.data


def test_api_check_domain(client, registered):
    registered.update({'acme.net', 'acme.us'})

    r = client.post('/api/check-domain', json={'domains': ['  Acme ', 'https://www.zeta.in', '']})

    assert r.status_code == 200
    data = r.get_json()
    assert [group['baseDomain'] for group in data['results']] == ['acme', 'zeta']
    acme = data['results'][0]['extensions']
    assert [e['domain'] for e in acme] == ['acme.net', 'acme.co', 'acme.co.in', 'acme.in', 'acme.us']
    assert acme[0] == {'domain': 'acme.net', 'available': False, 'status': 'taken', 'methods': ['dns']}
    assert acme[1]['available'] is True and acme[1]['status'] == 'available'
    assert data['summary'] == {'total': 10, 'taken': 2, 'available': 8, 'error': 0, 'unknown': 0}
    assert data['invalid'] == []


def test_api_reports_invalid_names(client, registered):
    r = client.post('/api/check-domain', json={'domains': ['good', 'not ok']})
    data = r.get_json()
    assert data['invalid'] == ['not ok']
    assert len(data['results']) == 1


def test_api_vote_method(client, monkeypatch):
    import domain_checker
    for probe in ('check_domain_whois', 'check_domain_dns', 'check_domain_socket', 'check_domain_http'):
        monkeypatch.setattr(domain_checker, probe, lambda d: d.endswith('.us'))

    r = client.post('/api/check-domain', json={'domains': ['acme'], 'method': 'vote'})

    extensions = r.get_json()['results'][0]['extensions']
    assert {e['domain']: e['status'] for e in extensions}['acme.us'] == 'available'
    assert {e['domain']: e['status'] for e in extensions}['acme.net'] == 'taken'
    assert extensions[0]['confidence'] == 0.0


def test_api_requires_domains_array(client):
    for body in ({}, {'domains': 'acme'}, {'domains': None}):
        r = client.post('/api/check-domain', json=body)
        assert r.status_code == 400
        assert r.get_json() == {'message': 'Domains array is required'}

    r = client.post('/api/check-domain', data='not json', content_type='text/plain')
    assert r.status_code == 400


def test_api_empty_domains_array(client):
    r = client.post('/api/check-domain', json={'domains': []})

    assert r.status_code == 200
    data = r.get_json()
    assert data['results'] == []
    assert data['summary']['total'] == 0


def test_api_rejects_non_string_domains(client):
    r = client.post('/api/check-domain', json={'domains': ['acme', 42]})
    assert r.status_code == 400


def test_api_rejects_unknown_method(client):
    r = client.post('/api/check-domain', json={'domains': ['acme'], 'method': 'psychic'})
    assert r.status_code == 400
    assert 'Unknown method' in r.get_json()['message']


def test_api_caps_number_of_names(client, monkeypatch):
    monkeypatch.setattr(config, 'MAX_BASE_NAMES', 2)
    r = client.post('/api/check-domain', json={'domains': ['a', 'b', 'c']})
    assert r.status_code == 400


def test_api_method_not_allowed(client):
    r = client.get('/api/check-domain')
    assert r.status_code == 405
    assert r.get_json() == {'message': 'Method not allowed'}


def test_api_rate_limited(client, registered, monkeypatch):
    monkeypatch.setattr(config, 'RATE_LIMIT_REQUESTS', 2)

    codes = [client.post('/api/check-domain', json={'domains': ['acme']}).status_code for _ in range(3)]

    assert codes == [200, 200, 429]
    r = client.post('/api/check-domain', json={'domains': ['acme']})
    assert r.get_json() == {'message': 'Too many requests'}
    assert 'Retry-After' in r.headers


def test_rate_limit_is_per_forwarded_client(client, registered, monkeypatch):
    monkeypatch.setattr(config, 'RATE_LIMIT_REQUESTS', 1)

    first = client.post('/api/check-domain', json={'domains': ['acme']},
                        headers={'X-Forwarded-For': '198.51.100.1, 10.0.0.1'})
    second = client.post('/api/check-domain', json={'domains': ['acme']},
                         headers={'X-Forwarded-For': '198.51.100.2'})
    again = client.post('/api/check-domain', json={'domains': ['acme']},
                        headers={'X-Forwarded-For': '198.51.100.1'})

    assert first.status_code == 200
    assert second.status_code == 200
    assert again.status_code == 429


def test_rate_limit_disabled_with_zero(client, registered, monkeypatch):
    monkeypatch.setattr(config, 'RATE_LIMIT_REQUESTS', 0)

    codes = {client.post('/api/check-domain', json={'domains': ['acme']}).status_code for _ in range(5)}

    assert codes == {200}


def test_form_check_rate_limited(client, registered, monkeypatch):
    monkeypatch.setattr(config, 'RATE_LIMIT_REQUESTS', 1)

    client.post('/check', data={'domains': 'acme', 'method': 'dns'})
    r = client.post('/check', data={'domains': 'acme', 'method': 'dns'})

    assert r.status_code == 429
    assert b'Too many checks' in r.data


def test_health_is_not_rate_limited(client, monkeypatch):
    monkeypatch.setattr(config, 'RATE_LIMIT_REQUESTS', 1)
    assert all(client.get('/health').status_code == 200 for _ in range(3))


def test_form_check_renders_results(client, registered):
    registered.add('acme.co')

    r = client.post('/check', data={'domains': 'acme\nnot ok', 'method': 'dns'})

    assert r.status_code == 200
    assert b'acme.co.in' in r.data
    assert b'1 taken' in r.data
    assert b'Skipped invalid names: not ok' in r.data


def test_form_check_empty_redirects(client):
    r = client.post('/check', data={'domains': '   \n', 'method': 'dns'})
    assert r.status_code == 302
    assert r.headers['Location'].endswith('/')


def test_form_check_bad_method(client):
    r = client.post('/check', data={'domains': 'acme', 'method': 'nope'})
    assert r.status_code == 400
    assert b'valid check method' in r.data


def test_export_contains_only_taken(client, registered):
    registered.update({'acme.net', 'acme.co.in'})

    r = client.post('/export', data={'domains': 'acme', 'method': 'dns'})

    assert r.status_code == 200
    assert r.mimetype == 'text/csv'
    assert 'attachment' in r.headers['Content-Disposition']
    lines = r.get_data(as_text=True).splitlines()
    assert lines == ['Domain,Extension,Status', 'acme,.net,Taken', 'acme,.co.in,Taken']


def test_health(client):
    r = client.get('/health')
    assert r.status_code == 200
    assert r.get_json()['status'] == 'ok'


def test_robots(client):
    r = client.get('/robots.txt')
    assert r.status_code == 200
    assert b'Disallow: /api/' in r.data
    r.close()


def test_requests_are_access_logged(client):
    import os
    client.get('/health')
    with open(os.path.join(config.LOG_DIR, 'access.log'), encoding='utf-8') as f:
        assert '/health | 200' in f.read()
