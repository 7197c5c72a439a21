"""
Simple usage example. A payments extension receives a payment session, records
it, resolves it, and later records a partial refund against it.

Runs against an in-memory database unless DATABASE_URL is set. Ids are
generated per run so a persistent database can be reused.
"""
import asyncio
import os
import uuid

from payment_records import PaymentRecordStore, RESOLVE, init_db, close_db, get_db_context


async def run():
    await init_db(os.getenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:"))
    run_id = uuid.uuid4().hex[:8]
    payment_id = f"pay-example-{run_id}"
    try:
        async with get_db_context() as db:
            store = PaymentRecordStore(db)
            payment = await store.create_payment_session({
                "id": payment_id,
                "amount": "49.90",
                "currency": "USD",
                "paymentMethod": {"type": "offsite"},
                "customer": {"email": "buyer@example.com"},
            })
            await store.get_or_create_configuration(payment.id, {"ready": True})
            await store.update_payment_session_status(payment.id, RESOLVE)
            await store.create_refund_session({
                "id": f"refund-example-{run_id}",
                "paymentId": payment.id,
                "amount": "10",
            })

        async with get_db_context() as db:
            payment = await PaymentRecordStore(db).get_payment_session(payment_id)
            print("Payment:", payment.to_dict(include_relations=True))
    finally:
        await close_db()

if __name__ == "__main__":
    asyncio.run(run())
