from setlistbot import bootstrap_token


def test_missing_credentials():
    assert bootstrap_token.main() == 1
