"""Product catalog endpoints under /api/v1/products."""

import pytest


@pytest.fixture
def create_product(client, auth_headers_expert, expert_account):
    def _create(**body):
        payload = {"name": "Guitar lesson", "unitAmountMinorUnits": 2500, **body}
        return client.post("/api/v1/products", json=payload, headers=auth_headers_expert)

    return _create


def test_create_product(create_product, expert_account, test_expert, fake_stripe):
    response = create_product(description="60 minutes")

    assert response.status_code == 200
    data = response.json()
    assert data["priceRef"] in fake_stripe.prices
    product = data["product"]
    assert product["productId"] == data["productId"]
    assert product["unitAmountMinorUnits"] == 2500
    assert product["currencyCode"] == "usd"
    assert product["ownerAccountId"] == expert_account.stripe_account_id
    assert product["createdByUserId"] == test_expert.id
    assert product["price"]["formatted"] == "25 USD"


def test_create_product_from_decimal_price(create_product, fake_stripe):
    response = create_product(unitAmountMinorUnits=None, price="19.99")

    assert response.status_code == 200
    assert response.json()["product"]["unitAmountMinorUnits"] == 1999


@pytest.mark.parametrize("amount", [0, -100])
def test_non_positive_amount_is_rejected(create_product, fake_stripe, amount):
    response = create_product(unitAmountMinorUnits=amount)

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_ARGUMENT"
    assert fake_stripe.products == {}


def test_both_amounts_is_rejected(create_product):
    response = create_product(price="25.00")
    assert response.status_code == 400


def test_cannot_sell_into_another_account(create_product, fake_stripe):
    response = create_product(destinationAccountId=fake_stripe.add_account())
    assert response.status_code == 400


def test_create_requires_recipient_account(client, auth_headers_seeker):
    response = client.post(
        "/api/v1/products",
        json={"name": "Lesson", "unitAmountMinorUnits": 1000},
        headers=auth_headers_seeker,
    )
    assert response.status_code == 404


def test_create_requires_authentication(client):
    response = client.post("/api/v1/products", json={"name": "Lesson", "unitAmountMinorUnits": 1000})
    assert response.status_code == 401


def test_list_is_public_and_filtered(client, create_product, fake_stripe, test_expert_2):
    create_product(name="Mine")
    other_account = fake_stripe.add_account()
    fake_stripe.create_product(
        {
            "name": "Theirs",
            "default_price_data": {"unit_amount": 900, "currency": "usd"},
            "metadata": {"connected_account_id": other_account, "created_by_user_id": test_expert_2.id},
        }
    )

    everything = client.get("/api/v1/products")
    assert everything.status_code == 200
    assert {p["name"] for p in everything.json()["products"]} == {"Mine", "Theirs"}

    theirs = client.get("/api/v1/products", params={"accountId": other_account})
    assert [p["name"] for p in theirs.json()["products"]] == ["Theirs"]


def test_list_respects_limit(client, create_product):
    for index in range(3):
        create_product(name=f"Lesson {index}")

    response = client.get("/api/v1/products", params={"limit": 2})

    data = response.json()
    assert len(data["products"]) == 2
    assert data["hasMore"] is True
    assert data["products"][0]["name"] == "Lesson 2"


def test_list_rejects_malformed_account_id(client):
    response = client.get("/api/v1/products", params={"accountId": "acct' OR '1"})
    assert response.status_code == 400
