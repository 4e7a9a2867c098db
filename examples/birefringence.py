from SSFM import propagate_vector, fftw
from SSFM.polarization import rotate_in
import numpy as np

N = 2048
T0 = 1e-12
dt = 16 * T0 / N
beta2 = -21.7e-27
gamma = 1.3e-3
# beat length of 10 m
dbeta0 = 2 * np.pi / 10
dz = 1e-3
L = 20.0


def main() -> None:
    fftw.set_planner_effort("estimate")
    t = (np.arange(N) - N // 2) * dt
    P0 = abs(beta2) / (gamma * T0**2)
    E_0 = np.sqrt(P0) / np.cosh(t / T0)
    # launched at 45 degrees of the slow axis
    ux = E_0 / np.sqrt(2)
    uy = E_0 / np.sqrt(2)
    for method in ["elliptical", "circular"]:
        Ex, Ey = propagate_vector(
            ux,
            uy,
            dt,
            dz,
            int(L / dz),
            0.0,
            0.0,
            [dbeta0 / 2, 0.0, beta2],
            [-dbeta0 / 2, 0.0, beta2],
            gamma,
            psi=0.0,
            chi=0.1,
            method=method,
            verbose=True,
        )
        Ea, Eb = rotate_in(Ex, Ey, 0.1, 0.0)
        P_a = np.sum(np.abs(Ea) ** 2)
        P_b = np.sum(np.abs(Eb) ** 2)
        E_x = np.sum(np.abs(Ex) ** 2) * dt
        print(f"{method} : power in the a eigenstate {P_a / (P_a + P_b):.4f}")
        print(f"{method} : x polarized energy {E_x:.4e} J")


if __name__ == "__main__":
    main()
