"""Init module for the SSFM package."""

from setuptools import setup

setup(
    name="SSFM",
    version="1.0.0",
    description="A package for propagating pulses in optical fibers"
    " (scalar and vector NLSE) using the Split-Step Fourier method.",
    url="https://github.com/Quantum-Optics-LKB/SSFM",
    author="Tangui Aladjidi",
    author_email="tangui.aladjidi@lkb.upmc.fr",
    license="GPLv3",
    packages=["SSFM"],
    install_requires=[
        "numpy",
        "scipy",
        "tqdm",
        "pyfftw",
        "numba",
    ],
    extras_require={"test": ["pytest"]},
    classifiers=[
        "Development Status :: 1 - Planning",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: GNU General Public License v3 (GPLv3)",
        "Operating System :: POSIX :: Linux",
        "Operating System :: MacOS",
        "Operating System :: Microsoft :: Windows",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Scientific/Engineering :: Physics",
    ],
)
