from conftest import VALID_CODE, auth_headers, make_messages, make_user
from wallfair.core.constants import INITIAL_LIQUIDITY, ONE, REFERRAL_REWARD, ChatMessageType, TradeStatus
from wallfair.db.models.trade import Trade
from wallfair.db.models.user import User
from wallfair.services import user_service


# --- Phone login ---

async def test_login_creates_user_and_sends_sms(client, ctx, db):
    res = await client.post("/api/user/login", json={"phone": "+49 170 6666661"})

    assert res.status_code == 201
    assert res.json() == {"phone": "+491706666661", "smsStatus": "pending", "existing": False}
    assert ctx.sms.sent == ["+491706666661"]
    assert await user_service.get_user_by_phone(db, "+491706666661") is not None

    res = await client.post("/api/user/login", json={"phone": "+491706666661"})
    assert res.json()["existing"] is True


async def test_login_stores_existing_referrer_only(client, db):
    referrer = await make_user(db, "+491706666662")

    await client.post("/api/user/login", json={"phone": "+491706666663", "ref": referrer.id})
    await client.post("/api/user/login", json={"phone": "+491706666664", "ref": 9999})

    assert (await user_service.get_user_by_phone(db, "+491706666663")).ref == referrer.id
    assert (await user_service.get_user_by_phone(db, "+491706666664")).ref is None


async def test_login_rejects_invalid_phone(client):
    res = await client.post("/api/user/login", json={"phone": "abc"})
    assert res.status_code == 422


async def test_verify_login_issues_working_session(client):
    await client.post("/api/user/login", json={"phone": "+491706666665"})

    res = await client.post("/api/user/verifyLogin", json={"phone": "+491706666665", "smsToken": "000000"})
    assert res.status_code == 422
    assert res.json() == {"detail": "Invalid verification code"}

    res = await client.post("/api/user/verifyLogin", json={"phone": "+491706666665", "smsToken": VALID_CODE})
    assert res.status_code == 201
    body = res.json()
    assert body["phone"] == "+491706666665"
    assert body["confirmed"] is False

    res = await client.get("/api/user/refList", headers={"Authorization": f"Bearer {body['session']}"})
    assert res.status_code == 200
    assert res.json() == {"userId": body["userId"], "refList": []}


async def test_invalid_session_token(client):
    res = await client.get("/api/user/refList", headers={"Authorization": "Bearer nope"})
    assert res.status_code == 401


# --- Profile ---

async def test_save_additional_information_confirms_and_mails(client, ctx, db):
    referrer = await make_user(db, "+491706666666")
    user = await make_user(db, "+491706666667", ref=referrer.id)

    res = await client.post(
        "/api/user/saveAdditionalInformation",
        json={"email": "eve@example.com", "name": "Eve", "username": "eve wins"},
        headers=auth_headers(ctx, user),
    )

    assert res.status_code == 201
    assert res.json() == {"userId": user.id, "phone": user.phone, "name": "evewins", "email": "eve@example.com"}
    assert ctx.mailer.sent == ["eve@example.com"]
    assert (referrer.id, REFERRAL_REWARD) in ctx.wallet.minted
    assert (user.id, INITIAL_LIQUIDITY) in ctx.wallet.minted

    stored = await db.get(User, user.id, populate_existing=True)
    assert stored.confirmed is True
    assert stored.email_code == "654321"


async def test_save_additional_information_conflicts(client, ctx, db):
    await make_user(db, "+491706666668", username="taken", email="taken@example.com")
    user = await make_user(db, "+491706666669")

    res = await client.post(
        "/api/user/saveAdditionalInformation", json={"username": "taken"}, headers=auth_headers(ctx, user)
    )
    assert res.status_code == 409
    assert res.json() == {"detail": "Username is already used"}

    res = await client.post(
        "/api/user/saveAdditionalInformation", json={"email": "taken@example.com"}, headers=auth_headers(ctx, user)
    )
    assert res.status_code == 409
    assert res.json() == {"detail": "Email address is already used"}


async def test_accept_conditions_confirms_once(client, ctx, db):
    user = await make_user(db, "+491706666670")

    res = await client.post("/api/user/acceptConditions", json={"conditions": [True, True]}, headers=auth_headers(ctx, user))
    assert res.status_code == 201
    assert res.json() == {"confirmed": True}

    await client.post("/api/user/acceptConditions", json={"conditions": [True, True]}, headers=auth_headers(ctx, user))
    assert ctx.wallet.minted == [(user.id, INITIAL_LIQUIDITY)]

    res = await client.post("/api/user/acceptConditions", json={"conditions": [True, False]}, headers=auth_headers(ctx, user))
    assert res.status_code == 422


async def test_bind_wallet_address(client, ctx, db):
    owner = await make_user(db, "+491706666671", wallet_address="0xabc")
    user = await make_user(db, "+491706666672")

    res = await client.post("/api/user/bindWalletAddress", json={"walletAddress": "0xabc"}, headers=auth_headers(ctx, user))
    assert res.status_code == 409

    res = await client.post("/api/user/bindWalletAddress", json={"walletAddress": "0xdef"}, headers=auth_headers(ctx, user))
    assert res.status_code == 201
    assert res.json() == {"userId": user.id, "walletAddress": "0xdef"}

    res = await client.post("/api/user/bindWalletAddress", json={"walletAddress": "0xabc"}, headers=auth_headers(ctx, owner))
    assert res.status_code == 201

    res = await client.post("/api/user/bindWalletAddress", json={}, headers=auth_headers(ctx, owner))
    assert res.status_code == 422


async def test_confirm_email(client, db):
    user = await make_user(db, "+491706666673", email="f@example.com", email_code="111111")

    res = await client.get("/api/user/confirm-email", params={"userId": user.id, "code": "222222"})
    assert res.status_code == 422

    res = await client.get("/api/user/confirm-email", params={"userId": user.id, "code": "111111"})
    assert res.status_code == 200
    assert res.json() == {"status": "OK"}

    res = await client.get("/api/user/confirm-email", params={"userId": user.id, "code": "111111"})
    assert res.status_code == 403


async def test_update_user_only_self_or_admin(client, ctx, db):
    user = await make_user(db, "+491706666674")
    other = await make_user(db, "+491706666675")
    admin = await make_user(db, "+491706666676", admin=True)

    res = await client.patch(f"/api/user/{other.id}", json={"name": "Hacked"}, headers=auth_headers(ctx, user))
    assert res.status_code == 403

    res = await client.patch(f"/api/user/{user.id}", json={"profilePicture": "me.png"}, headers=auth_headers(ctx, user))
    assert res.status_code == 200

    res = await client.patch(f"/api/user/{other.id}", json={"name": "Renamed"}, headers=auth_headers(ctx, admin))
    assert res.status_code == 200

    assert (await db.get(User, user.id, populate_existing=True)).profile_picture == "me.png"
    assert (await db.get(User, other.id, populate_existing=True)).name == "Renamed"


# --- Leaderboard & info ---

async def test_leaderboard(client, db):
    await make_user(db, "+491706666677", username="low", amount_won=10)
    await make_user(db, "+491706666678", username="high", amount_won=300)
    await make_user(db, "+491706666679", username="mid", amount_won=120)
    await make_user(db, "+491706666680", amount_won=999)

    res = await client.get("/api/user/leaderboard/2/0")

    assert res.status_code == 200
    assert res.json() == {
        "total": 3,
        "users": [{"username": "high", "amountWon": 300}, {"username": "mid", "amountWon": 120}],
        "limit": 2,
        "skip": 0,
    }


async def test_user_info(client, ctx, db):
    leader = await make_user(db, "+491706666681", username="leader", amount_won=500)
    user = await make_user(db, "+491706666682", username="me", amount_won=200)
    await make_messages(db, 3, user_id=user.id, type=ChatMessageType.EVENT_NEW_BET)
    ctx.wallet.balances[user.id] = INITIAL_LIQUIDITY + 25 * ONE

    res = await client.get(f"/api/user/{user.id}", headers=auth_headers(ctx, leader))

    assert res.status_code == 200
    body = res.json()
    assert body["username"] == "me"
    assert body["balance"] == "5025.0000"
    assert body["totalWin"] == "25.0000"
    assert body["rank"] == 2
    assert body["toNextRank"] == 300
    assert body["unreadNotifications"] == 3


async def test_user_info_missing_user_and_ledger_failure(client, ctx, db):
    user = await make_user(db, "+491706666683")

    res = await client.get("/api/user/4242", headers=auth_headers(ctx, user))
    assert res.status_code == 404

    ctx.wallet.fail = True
    res = await client.get(f"/api/user/{user.id}", headers=auth_headers(ctx, user))
    assert res.status_code == 422
    assert res.json() == {"detail": "Account information loading failed"}


# --- Trades & wallet ---

async def test_open_bets_are_summed_per_outcome(client, ctx, db):
    user = await make_user(db, "+491706666684")
    db.add_all([
        Trade(user_id=user.id, bet_id=1, outcome_index=0, investment_amount=10, outcome_tokens_bought=20),
        Trade(user_id=user.id, bet_id=1, outcome_index=0, investment_amount=5, outcome_tokens_bought=8),
        Trade(user_id=user.id, bet_id=1, outcome_index=1, investment_amount=3, outcome_tokens_bought=4),
        Trade(user_id=user.id, bet_id=2, outcome_index=0, investment_amount=7, outcome_tokens_bought=9,
              status=TradeStatus.CLOSED.value),
    ])
    await db.commit()

    res = await client.get("/api/user/open-bets", headers=auth_headers(ctx, user))

    assert res.status_code == 200
    assert res.json() == {
        "openBets": [
            {"betId": 1, "outcome": 0, "investmentAmount": 15, "outcomeAmount": 28},
            {"betId": 1, "outcome": 1, "investmentAmount": 3, "outcomeAmount": 4},
        ]
    }


async def test_amm_history_amounts_are_pretty(client, ctx, db):
    user = await make_user(db, "+491706666685")
    ctx.wallet.amm_interactions = [{
        "buyer": str(user.id),
        "direction": "BUY",
        "investmentamount": str(12 * ONE + ONE // 2),
        "feeamount": str(ONE // 100),
        "outcometokensbought": str(30 * ONE),
    }]

    res = await client.get("/api/user/history", headers=auth_headers(ctx, user))

    assert res.status_code == 200
    [entry] = res.json()
    assert entry["direction"] == "BUY"
    assert entry["investmentAmount"] == "12.5000"
    assert entry["feeAmount"] == "0.0100"
    assert entry["outcomeTokensBought"] == "30.0000"


async def test_ref_list(client, ctx, db):
    referrer = await make_user(db, "+491706666686")
    await make_user(db, "+491706666687", ref=referrer.id, username="friend")

    res = await client.get("/api/user/refList", headers=auth_headers(ctx, referrer))

    [friend] = res.json()["refList"]
    assert friend["username"] == "friend"
