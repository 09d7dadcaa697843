"""Test authentication endpoints."""
import json

def test_health_check(client):
    """Test auth health endpoint."""
    response = client.get('/api/auth/health')
    assert response.status_code == 200
    data = json.loads(response.data)
    assert data['message'] == 'Auth service is running'

def test_app_health(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert json.loads(response.data)['status'] == 'healthy'

def test_login_success(client, teacher_user):
    """Test successful login."""
    response = client.post('/api/auth/login',
        json={
            'email': 'teacher@example.com',
            'password': 'teacher123'
        })

    assert response.status_code == 200
    data = json.loads(response.data)
    assert data['error'] == False
    assert 'access_token' in data['data']
    assert data['data']['user']['email'] == 'teacher@example.com'

def test_login_is_case_insensitive_on_email(client, teacher_user):
    response = client.post('/api/auth/login',
        json={'email': ' Teacher@Example.com ', 'password': 'teacher123'})
    assert response.status_code == 200

def test_login_invalid_credentials(client, teacher_user):
    """Test login with invalid credentials."""
    response = client.post('/api/auth/login',
        json={
            'email': 'teacher@example.com',
            'password': 'wrongpassword'
        })

    assert response.status_code == 401
    assert json.loads(response.data)['error'] == True

def test_login_validation(client):
    """Test login validation."""
    # Missing body
    response = client.post('/api/auth/login')
    assert response.status_code == 400

    # Missing fields
    response = client.post('/api/auth/login', json={'email': 'teacher@example.com'})
    assert response.status_code == 400

def test_login_deactivated_account(client, teacher_user):
    teacher_user.is_active = False
    teacher_user.save()

    response = client.post('/api/auth/login',
        json={'email': 'teacher@example.com', 'password': 'teacher123'})
    assert response.status_code == 401

def test_get_current_user(client, admin_user):
    """Test get current user profile."""
    # First login to get token
    login_response = client.post('/api/auth/login',
        json={
            'email': 'admin@example.com',
            'password': 'admin123'
        })

    token = json.loads(login_response.data)['data']['access_token']

    # Test profile endpoint
    response = client.get('/api/auth/me',
        headers={'Authorization': f'Bearer {token}'})

    assert response.status_code == 200
    data = json.loads(response.data)
    assert data['error'] == False
    assert data['data']['email'] == 'admin@example.com'

def test_me_requires_token(client):
    response = client.get('/api/auth/me')
    assert response.status_code == 401
    assert json.loads(response.data)['message'] == 'Authorization token required'

def test_login_records_last_login(client, teacher_user):
    assert teacher_user.last_login is None

    client.post('/api/auth/login',
        json={'email': 'teacher@example.com', 'password': 'teacher123'})

    assert teacher_user.last_login is not None
