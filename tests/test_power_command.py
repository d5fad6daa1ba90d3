from hoyparse.parser import CommandStatus
from hoyparse.power_command import PowerCommandParser


def test_defaults():
    p = PowerCommandParser()
    assert p.last_power_command_success is CommandStatus.OK
    assert p.last_update_command == 0
    assert p.last_update == 0


def test_last_update_command_also_sets_last_update():
    p = PowerCommandParser()
    p.last_update_command = 5000
    assert p.last_update_command == 5000
    assert p.last_update == 5000


def test_status_can_be_changed():
    p = PowerCommandParser()
    p.last_power_command_success = CommandStatus.PENDING
    assert p.last_power_command_success is CommandStatus.PENDING