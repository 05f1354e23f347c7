"""
Tabulated x-ray scattering factor coefficients.

Cromer-Mann coefficients are listed as ``(a1, b1, a2, b2, a3, b3, a4, b4,
c)`` for ``0 <= sin(theta)/lambda <= 2`` (International Tables for
Crystallography Vol. C, Table 6.1.1.4). High-angle coefficients of Fox et
al. are listed as ``(a0, a1, a2, a3)`` exactly as tabulated, for
``2 < sin(theta)/lambda <= 6`` (Table 6.1.1.5).
"""

SCAT_CROMER_MANN_COEFFS = {
    "H": (0.489918, 20.6593, 0.262003, 7.74039, 0.196767, 49.5519,
          0.049879, 2.20159, 0.001305),
    "Li1+": (0.6968, 4.6237, 0.7888, 1.9557, 0.3414, 0.6316,
             0.1563, 10.0953, 0.0167),
    "C": (2.31, 20.8439, 1.02, 10.2075, 1.5886, 0.5687,
          0.865, 51.6512, 0.2156),
    "O": (3.0485, 13.2771, 2.2868, 5.7011, 1.5463, 0.3239,
          0.867, 32.9089, 0.2508),
    "O1-": (4.1916, 12.8573, 1.63969, 4.17236, 1.52673, 47.0179,
            -20.307, -0.01404, 21.9412),
    "Al": (6.4202, 3.0387, 1.9002, 0.7426, 1.5936, 31.5472,
           1.9646, 85.0886, 1.1151),
    "Si": (6.2915, 2.4386, 3.0353, 32.3337, 1.9891, 0.6785,
           1.541, 81.6937, 1.1407),
}

SCAT_HI_ANG_FOX_COEFFS = {
    "Li": (0.89463, -2.43660, 2.32500, -0.71949),
    "C": (1.70560, -1.56760, 1.18930, -0.42715),
}
