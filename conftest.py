from datetime import datetime


def pytest_configure(config):
    config.time_str = datetime.now().strftime("%Y%m%d_%H%M%S")


def pytest_generate_tests(metafunc):
    # any test asking for a `time_str` argument gets the same session timestamp
    if "time_str" in metafunc.fixturenames:
        metafunc.parametrize("time_str", [metafunc.config.time_str], scope="session")
