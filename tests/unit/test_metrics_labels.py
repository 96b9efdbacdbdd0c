from observability.db_metrics import sql_verb


def test_sql_verb():
    assert sql_verb("SELECT id FROM snippets") == "select"
    assert sql_verb("  insert into users ...") == "insert"
    assert sql_verb("VACUUM") == "other"
    assert sql_verb("") == "other"
    assert sql_verb(None) == "other"


def test_requests_are_labelled_by_route_template(client):
    client.get("/snippet/12345")
    client.get("/missing/page")
    client.get("/static/css/main.css")
    text = client.get("/metrics").text
    assert 'route="/snippet/{snippet_id}"' in text
    assert 'route="<unmatched>"' in text
    assert 'route="/static"' in text
    assert "/snippet/12345" not in text
    assert "/missing/page" not in text


def test_db_statements_are_timed(client, application):
    application.snippets.create("timed", "c", 7)
    text = client.get("/metrics").text
    assert 'snippetbox_db_query_seconds_count{verb="insert"}' in text
