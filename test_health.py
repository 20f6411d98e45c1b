import pytest
from venue import create_app, db
import venue.main.routes as main_routes


@pytest.fixture
def client():
    app = create_app('testing')
    with app.test_client() as client:
        with app.app_context():
            db.create_all()
            yield client
            db.drop_all()


def test_health_json(client):
    """Standard JSON response for load balancers."""
    resp = client.get('/health')
    assert resp.status_code == 200
    data = resp.get_json()
    assert data['status'] in ('ok', 'warning')
    assert data['details']['db'] == 'ok'
    assert 'disk_free_percent' in data['details']
    assert data['timestamp'].endswith('Z')


def test_health_reports_db_failure(client, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError('connection refused')

    monkeypatch.setattr(main_routes, 'text', broken)
    resp = client.get('/health')
    assert resp.status_code == 500
    data = resp.get_json()
    assert data['status'] == 'error'
    assert data['details']['db'] == 'error'


def test_unknown_route_is_json_404(client):
    resp = client.get('/api/nothing-here')
    assert resp.status_code == 404
    assert resp.get_json()['category'] == 'not_found'


def test_cors_header_on_api(client):
    resp = client.get('/api/reservations', headers={'Origin': 'http://localhost:5173'})
    assert resp.status_code == 200
    assert resp.headers.get('Access-Control-Allow-Origin') in ('*', 'http://localhost:5173')
