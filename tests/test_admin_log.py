from warren.admin_log import DAY_ADVANCED, EPIDEMIC, PURCHASE, ColonyEventLog


def test_colony_event_log_filters_and_capacity():
    log = ColonyEventLog(capacity=2)
    log.record(day=1, event_type="A", payload={"value": 1})
    log.record(day=2, event_type="B", payload={"value": 2})
    log.record(day=3, event_type="B", payload={"value": 3})
    events = log.get_recent()
    assert len(events) == 2
    assert events[0].day == 2 and events[1].day == 3
    filtered = log.get_recent(event_type="B", limit=1)
    assert [event.payload["value"] for event in filtered] == [3]


def test_colony_event_helpers_create_payloads():
    log = ColonyEventLog()
    day = log.log_day(day=4, coins_earned=6, births=1, population=5, coins=80, food=0, water=3)
    assert day.event_type == DAY_ADVANCED
    assert "starving" in day.tags
    assert day.summary() == "day 4: +6 coins, 1 born, 5 rabbits"

    repair = log.log_purchase(day=5, item_id="training-grounds", quantity=1, price=1500, repaired=True)
    assert repair.payload["repaired"] is True
    assert log.get_recent(tag="repair") == [repair]

    outbreak = log.log_epidemic(day=6, phase="started", infected=3)
    assert outbreak.payload == {"phase": "started", "infected": 3}
    assert outbreak.tags == ("started",)


def test_subscribers_see_matching_records_until_unsubscribed():
    log = ColonyEventLog()
    seen = []
    unsubscribe = log.subscribe(seen.append, event_types=[PURCHASE])

    log.log_purchase(day=1, item_id="hay-bale", quantity=2, price=70)
    log.log_epidemic(day=1, phase="cured")
    unsubscribe()
    log.log_purchase(day=2, item_id="hay-bale", quantity=1, price=35)

    assert [event.payload["price"] for event in seen] == [70]
    assert len(log.get_recent(event_type=EPIDEMIC)) == 1


def test_clear_empties_history():
    log = ColonyEventLog()
    log.log_sale(day=40, sold=3, coins=75)
    log.clear()
    assert log.iter_all() == ()
