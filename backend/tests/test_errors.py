def test_healthz(client):
    r = client.get('/healthz')
    assert r.status_code == 200
    assert r.get_json() == {'status': 'ok'}


def test_unknown_path_uses_error_shape(client):
    r = client.get('/iam/nothing-here')
    assert r.status_code == 404
    err = r.get_json()['error']
    assert err['status'] == 404
    assert err['title'] == 'Not Found'


def test_non_object_body_is_rejected(client, admin_headers):
    r = client.post('/iam/roles', json=[1, 2], headers=admin_headers)
    assert r.status_code == 400
    assert r.get_json()['error']['detail'] == 'JSON object body required'


def test_domain_error_shape(client, admin_headers):
    r = client.delete('/iam/roles/777', headers=admin_headers)
    assert r.status_code == 404
    assert r.get_json() == {'error': {'status': 404, 'title': 'Not Found', 'detail': 'Role 777 not found'}}
