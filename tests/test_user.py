def test_get_own_user(client, alice):
    response = client.get(f'/v1/user?uuid={alice}')

    assert response.status_code == 200
    assert response.get_json()['data']['email'] == 'alice@budget-buddy.de'


def test_get_other_user(client, alice, bob):
    response = client.get(f'/v1/user?uuid={bob}')

    assert response.status_code == 409
    assert response.get_json()['message'] == "You can't retrieve different users"


def test_get_unknown_user(client, alice):
    response = client.get('/v1/user?uuid=unknown')

    assert response.status_code == 404
    assert response.get_json()['message'] == 'Provided user not found'


def test_service_account_reads_other_users(client, bob, service_account):
    response = client.get(f'/v1/user?uuid={bob}')

    assert response.status_code == 200
    assert response.get_json()['data']['name'] == 'Bob'


def test_update_own_user(client, alice):
    response = client.put('/v1/user', json={'uuid': alice, 'email': 'Alice@Example.com',
                                            'name': 'Alice', 'surname': 'Liddell'})
    data = response.get_json()['data']

    assert response.status_code == 200
    assert data['email'] == 'alice@example.com'
    assert data['surname'] == 'Liddell'


def test_update_to_email_in_use(client, alice, bob):
    response = client.put('/v1/user', json={'uuid': alice, 'email': 'bob@budget-buddy.de'})

    assert response.status_code == 409
    assert response.get_json()['message'] == 'This email is already in use'


def test_update_other_user(client, alice, bob, service_account):
    response = client.put('/v1/user', json={'uuid': bob, 'name': 'Robert'})

    assert response.status_code == 409
    assert response.get_json()['message'] == "You can't edit different users"


def test_update_unknown_user(client, alice):
    response = client.put('/v1/user', json={'uuid': 'unknown', 'name': 'Nobody'})

    assert response.status_code == 404
    assert response.get_json()['message'] == 'Requested user not found'


def test_update_rejects_non_string_email(client, alice):
    response = client.put('/v1/user', json={'uuid': alice, 'email': 42})

    assert response.status_code == 400
    assert response.get_json()['message'] == 'email must be a string'
