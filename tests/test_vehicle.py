import numpy as np
import pytest

from minipilot.vehicle import (
    Command,
    EkfVehicle,
    Jacobian,
    SetAngularVelocity,
    SetLinearVelocity,
    Vehicle,
)


def test_jacobian_defaults_are_zero_with_expected_shapes():
    jac = Jacobian()
    assert jac.da_dv.shape == (3, 3)
    assert jac.da_dq.shape == (3, 4)
    assert jac.ddw_dv.shape == (3, 3)
    assert jac.ddw_dw.shape == (3, 3)
    assert jac.ddw_dq.shape == (3, 4)
    for matrix in (jac.da_dv, jac.da_dq, jac.ddw_dv, jac.ddw_dw, jac.ddw_dq):
        assert not matrix.any()


def test_jacobian_rejects_wrong_shape():
    with pytest.raises(ValueError):
        Jacobian(da_dv=np.zeros((3, 4)))
    with pytest.raises(ValueError):
        Jacobian(ddw_dq=np.zeros((3, 3)))


def test_jacobian_accepts_nested_lists():
    jac = Jacobian(da_dv=[[1, 2, 3], [4, 5, 6], [7, 8, 9]])
    assert jac.da_dv[1, 2] == 6.0
    assert jac.da_dv.dtype == float


def test_jacobian_copies_input():
    source = np.eye(3)
    jac = Jacobian(ddw_dw=source)
    source[0, 0] = 42.0
    assert jac.ddw_dw[0, 0] == 1.0


def test_set_angular_velocity_converts_values():
    cmd = SetAngularVelocity([0.1, 0.2, 0.3], 5)
    np.testing.assert_allclose(cmd.angular_velocity, [0.1, 0.2, 0.3])
    assert cmd.thrust == 5.0


def test_set_linear_velocity_requires_three_components():
    with pytest.raises(ValueError):
        SetLinearVelocity([1.0, 2.0], 0.0)


def test_command_without_copter_payload():
    assert Command().copter_command is None


def test_command_carries_payload():
    payload = SetLinearVelocity([1.0, 0.0, 0.0], 0.5)
    cmd = Command(copter_command=payload)
    assert cmd.copter_command is payload
    assert cmd.copter_command.direction == 0.5


def test_interfaces_cannot_be_instantiated():
    with pytest.raises(TypeError):
        Vehicle()
    with pytest.raises(TypeError):
        EkfVehicle()