from SSFM import SSFM, callbacks, fftw, optical_cycle_time
import numpy as np

N = 4096
T0 = 1e-12  # pulse duration in s
dt = 20 * T0 / N
beta2 = -21.7e-27  # s^2/m
beta3 = 0.127e-39  # s^3/m
gamma = 1.3e-3  # 1/(W m)
wvl = 1550e-9
traman = 3e-15
L_D = T0**2 / abs(beta2)
P0 = 4 / (gamma * L_D)  # second order soliton
L = 2 * L_D
dz = L_D / 200


def main() -> None:
    fftw.option("-estimate")
    t = (np.arange(N) - N // 2) * dt
    E_0 = np.sqrt(P0) / np.cosh(t / T0)
    simu = SSFM(
        dt,
        dz,
        0.2e-3 / 4.343,
        [0.0, 0.0, beta2, beta3],
        gamma,
        NT=N,
        traman=traman,
        toptical=optical_cycle_time(wvl),
    )
    N_steps = int(L / dz)
    save_every = 40
    norms = np.zeros(N_steps // save_every)
    spectra = np.zeros((N_steps // save_every, N))
    E = simu.out_field(
        E_0,
        N_steps,
        verbose=True,
        callback=[callbacks.norm, callbacks.spectrum],
        callback_args=[(save_every, norms), (save_every, spectra)],
    )
    P = np.abs(E) ** 2
    print(f"Peak power : {P.max():.2f} W (input {P0:.2f} W)")
    print(f"Peak delay : {t[np.argmax(P)] * 1e12:.3f} ps")
    print(f"Energy loss : {1 - norms[-1] / norms[0]:.2e}")
    w = np.fft.fftshift(simu.w)
    print(f"Raman shift : {w[np.argmax(spectra[-1])] / 2 / np.pi:.3e} Hz")
    fftw.option("-savewisdom")


if __name__ == "__main__":
    main()
