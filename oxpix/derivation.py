"""Derivations and their ATerm serialization.

A derivation is what a fetch or build declaration evaluates to: a
builder, its arguments and environment, the inputs it needs, and the
outputs it promises. Nix writes it to the store as a .drv file in ATerm:

    Derive(
        [("out","/nix/store/...-source","r:sha256","<hex>")],   # outputs
        [("/nix/store/...-busybox.drv",["out"])],               # inputDrvs
        ["/nix/store/...-install-components.sh"],               # inputSrcs
        "x86_64-linux",                                         # platform
        "/nix/store/...-busybox",                               # builder
        ["ash","-e","..."],                                     # args
        [("name","rust-1.31.0-nightly"),("out","..."), ...]     # env
    )

Outputs are (name, path, hashAlgo, hash). For ordinary outputs the last
two are empty; a fixed-output derivation (any fetcher) states its
expected content up front, e.g. ("sha256", hex) or ("r:sha256", hex)
where "r:" means the hash is over the NAR of the result.

See: nix/src/libstore/derivations.cc
"""

from dataclasses import dataclass, field

from oxpix.digest import sha256


@dataclass
class DerivationOutput:
    path: str
    hash_algo: str  # "" unless fixed-output
    hash_value: str  # hex digest, "" unless fixed-output


@dataclass
class Derivation:
    outputs: dict[str, DerivationOutput] = field(default_factory=dict)
    input_drvs: dict[str, list[str]] = field(default_factory=dict)
    input_srcs: list[str] = field(default_factory=list)
    platform: str = ""
    builder: str = ""
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)

    @property
    def is_fixed_output(self) -> bool:
        return list(self.outputs) == ["out"] and self.outputs["out"].hash_algo != ""


_ESCAPES = str.maketrans({"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"})


def _q(s: str) -> str:
    return '"' + s.translate(_ESCAPES) + '"'


def _list(items) -> str:
    return "[" + ",".join(items) + "]"


def _tuple(*items: str) -> str:
    return "(" + ",".join(items) + ")"


def serialize(drv: Derivation) -> str:
    """Render a Derivation as ATerm.

    Outputs, input derivations, input sources and env are emitted in
    sorted order; args keep their order.
    """
    outputs = _list(
        _tuple(_q(name), _q(o.path), _q(o.hash_algo), _q(o.hash_value))
        for name, o in sorted(drv.outputs.items())
    )
    input_drvs = _list(
        _tuple(_q(path), _list(_q(o) for o in sorted(outs)))
        for path, outs in sorted(drv.input_drvs.items())
    )
    env = _list(_tuple(_q(k), _q(v)) for k, v in sorted(drv.env.items()))
    return "Derive" + _tuple(
        outputs,
        input_drvs,
        _list(_q(s) for s in sorted(drv.input_srcs)),
        _q(drv.platform),
        _q(drv.builder),
        _list(_q(a) for a in drv.args),
        env,
    )


def hash_derivation_modulo(drv: Derivation, drv_hashes: dict[str, bytes] | None = None,
                           mask_outputs: bool = True) -> bytes:
    """The hash a derivation's output paths are computed from.

    Output paths appear inside the derivation they are computed from, so
    the plain .drv hash can't be used. Nix breaks the cycle two ways:

    Fixed-output derivations hash only what they promise:

        sha256("fixed:out:<hashAlgo>:<hashValue>:<outPath>")

    so changing the URL or the fetcher's builder does not ripple into
    everything that depends on the fetched source.

    Regular derivations are serialized with every input .drv path
    replaced by that input's own modulo hash (`drv_hashes`, keyed by
    .drv path), and, when `mask_outputs` is set, their own output paths
    blanked. The caller computes an input's entry with
    mask_outputs=False, since by then its paths are known.

    See: nix/src/libstore/derivations.cc: hashDerivationModulo()
    """
    if drv.is_fixed_output:
        o = drv.outputs["out"]
        return sha256(f"fixed:out:{o.hash_algo}:{o.hash_value}:{o.path}".encode())

    drv_hashes = drv_hashes or {}
    input_drvs = {}
    for drv_path, outs in drv.input_drvs.items():
        if drv_path not in drv_hashes:
            raise ValueError(f"missing hash for input derivation: {drv_path}")
        input_drvs[drv_hashes[drv_path].hex()] = sorted(outs)

    if mask_outputs:
        outputs = {n: DerivationOutput("", o.hash_algo, o.hash_value) for n, o in drv.outputs.items()}
        env = {k: ("" if k in drv.outputs else v) for k, v in drv.env.items()}
    else:
        outputs = dict(drv.outputs)
        env = dict(drv.env)

    masked = Derivation(
        outputs=outputs,
        input_drvs=input_drvs,
        input_srcs=list(drv.input_srcs),
        platform=drv.platform,
        builder=drv.builder,
        args=list(drv.args),
        env=env,
    )
    return sha256(serialize(masked).encode())
