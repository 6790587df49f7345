"""Static Metal keyword, type, attribute and builtin function tables."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class CompletionInfo:
    """Static completion candidate."""

    label: str
    detail: str | None = None
    documentation: str | None = None
    insert_text: str | None = None


@dataclass(slots=True, frozen=True)
class DocumentationEntry:
    """Documentation for one builtin symbol."""

    symbol: str
    signature: str
    description: str
    kind: str
    category: str | None = None

    @property
    def markdown(self) -> str:
        """Render the entry as hover Markdown."""
        text = f"```metal\n{self.signature}\n```\n"
        if self.description:
            text += f"\n---\n\n{self.description}"
        if self.category:
            text += f"\n\n*Category: {self.category}*"
        return text


KEYWORDS = (
    "kernel", "vertex", "fragment",
    "constant", "device", "threadgroup", "thread",
    "struct", "enum", "typedef",
    "if", "else", "for", "while", "do", "switch", "case", "default",
    "break", "continue", "return",
    "const", "constexpr", "static", "inline",
    "true", "false",
    "using", "namespace",
    "template", "typename",
)  # fmt: skip

_SCALAR_TYPES = (
    "bool", "char", "uchar", "short", "ushort", "int", "uint", "long", "ulong",
    "half", "float", "bfloat", "size_t", "ptrdiff_t", "void",
)  # fmt: skip
_VECTOR_BASES = ("bool", "char", "uchar", "short", "ushort", "int", "uint", "half", "float")
_MATRIX_BASES = ("half", "float")

BUILTIN_TYPES = frozenset(
    (
        *_SCALAR_TYPES,
        *(f"{base}{size}" for base in _VECTOR_BASES for size in (2, 3, 4)),
        *(
            f"{base}{columns}x{rows}"
            for base in _MATRIX_BASES
            for columns in (2, 3, 4)
            for rows in (2, 3, 4)
        ),
        *(f"packed_{base}{size}" for base in ("half", "float", "int", "uint") for size in (2, 3, 4)),
        "matrix", "vec", "array", "sampler", "atomic_int", "atomic_uint", "atomic_bool",
        "texture1d", "texture1d_array", "texture2d", "texture2d_array", "texture2d_ms",
        "texture3d", "texturecube", "texturecube_array", "depth2d", "depth2d_array",
        "depthcube", "depth2d_ms",
    )
)  # fmt: skip

SAMPLER_CONSTANTS = (
    CompletionInfo("filter", "metal::filter", "Namespace for sampler filter modes"),
    CompletionInfo("linear", "Sampler filter mode", "Linear filtering - interpolates between texels"),
    CompletionInfo("nearest", "Sampler filter mode", "Nearest neighbor filtering - uses closest texel"),
    CompletionInfo("address", "metal::address", "Namespace for sampler address modes"),
    CompletionInfo("clamp_to_edge", "Sampler address mode", "Clamp coordinates to edge of texture"),
    CompletionInfo("clamp_to_zero", "Sampler address mode", "Clamp coordinates and use border color of 0"),
    CompletionInfo("clamp_to_border", "Sampler address mode", "Clamp coordinates and use border color"),
    CompletionInfo("repeat", "Sampler address mode", "Repeat texture coordinates"),
    CompletionInfo("mirrored_repeat", "Sampler address mode", "Repeat texture coordinates with mirroring"),
    CompletionInfo("coord", "metal::coord", "Namespace for sampler coordinate modes"),
    CompletionInfo("normalized", "Sampler coordinate mode", "Coordinates are normalized [0, 1]"),
    CompletionInfo("pixel", "Sampler coordinate mode", "Coordinates are in pixel space"),
)

ATTRIBUTES = (
    CompletionInfo("[[kernel]]", "Compute kernel function", insert_text="[[kernel]]"),
    CompletionInfo("[[vertex]]", "Vertex shader function", insert_text="[[vertex]]"),
    CompletionInfo("[[fragment]]", "Fragment shader function", insert_text="[[fragment]]"),
    CompletionInfo("[[buffer(n)]]", "Buffer binding point", insert_text="[[buffer(${1:0})]]"),
    CompletionInfo("[[texture(n)]]", "Texture binding point", insert_text="[[texture(${1:0})]]"),
    CompletionInfo("[[sampler(n)]]", "Sampler binding point", insert_text="[[sampler(${1:0})]]"),
    CompletionInfo("[[stage_in]]", "Stage input structure"),
    CompletionInfo("[[position]]", "Vertex position output"),
    CompletionInfo("[[point_size]]", "Point size output"),
    CompletionInfo("[[color(n)]]", "Color attachment", insert_text="[[color(${1:0})]]"),
    CompletionInfo("[[user(name)]]", "User-defined attribute", insert_text="[[user(${1:name})]]"),
    CompletionInfo("[[attribute(n)]]", "Vertex attribute index", insert_text="[[attribute(${1:0})]]"),
    CompletionInfo("[[thread_position_in_grid]]", "Global thread position"),
    CompletionInfo("[[thread_position_in_threadgroup]]", "Local thread position"),
    CompletionInfo("[[threadgroup_position_in_grid]]", "Threadgroup position"),
    CompletionInfo("[[threads_per_threadgroup]]", "Threads per threadgroup size"),
    CompletionInfo("[[threads_per_grid]]", "Total threads in grid"),
    CompletionInfo("[[thread_index_in_threadgroup]]", "Linear thread index in threadgroup"),
    CompletionInfo("[[thread_index_in_simdgroup]]", "Thread index in SIMD group"),
    CompletionInfo("[[simdgroup_index_in_threadgroup]]", "SIMD group index in threadgroup"),
    CompletionInfo("[[vertex_id]]", "Vertex ID"),
    CompletionInfo("[[instance_id]]", "Instance ID"),
    CompletionInfo("[[base_vertex]]", "Base vertex value"),
    CompletionInfo("[[base_instance]]", "Base instance value"),
)

SNIPPETS = (
    CompletionInfo(
        "kernel_function",
        "Compute kernel template",
        insert_text=(
            "kernel void ${1:computeShader}(\n"
            "    device float* ${2:data} [[buffer(0)]],\n"
            "    uint id [[thread_position_in_grid]]\n"
            ") {\n"
            "    $0\n"
            "}"
        ),
    ),
    CompletionInfo(
        "vertex_function",
        "Vertex shader template",
        insert_text=(
            "vertex float4 ${1:vertexShader}(\n"
            "    uint vertexID [[vertex_id]]\n"
            ") {\n"
            "    $0\n"
            "    return float4(0.0);\n"
            "}"
        ),
    ),
    CompletionInfo(
        "fragment_function",
        "Fragment shader template",
        insert_text=(
            "fragment float4 ${1:fragmentShader}(\n"
            "    float4 position [[position]]\n"
            ") {\n"
            "    $0\n"
            "    return float4(1.0);\n"
            "}"
        ),
    ),
)

_MATH = "Math Functions"
_COMMON = "Common Functions"
_GEOMETRIC = "Geometric Functions"
_RELATIONAL = "Relational Functions"
_SYNC = "Synchronization Functions"
_TEXTURE = "Texture Functions"
_TYPES = "Data Types"

BUILTIN_DOCUMENTATION = (
    DocumentationEntry("abs", "T abs(T x)", "Returns the absolute value of x.", "function", _MATH),
    DocumentationEntry("ceil", "T ceil(T x)", "Rounds x up to the nearest integral value.", "function", _MATH),
    DocumentationEntry("cos", "T cos(T x)", "Returns the cosine of x, in radians.", "function", _MATH),
    DocumentationEntry("exp", "T exp(T x)", "Returns the exponential base e of x.", "function", _MATH),
    DocumentationEntry("exp2", "T exp2(T x)", "Returns the exponential base 2 of x.", "function", _MATH),
    DocumentationEntry("floor", "T floor(T x)", "Rounds x down to the nearest integral value.", "function", _MATH),
    DocumentationEntry("fma", "T fma(T a, T b, T c)", "Returns a * b + c as a fused multiply-add.", "function", _MATH),
    DocumentationEntry("fmod", "T fmod(T x, T y)", "Returns x - y * trunc(x / y).", "function", _MATH),
    DocumentationEntry("fract", "T fract(T x)", "Returns the fractional part of x, clamped below 1.", "function", _MATH),
    DocumentationEntry("log", "T log(T x)", "Returns the natural logarithm of x.", "function", _MATH),
    DocumentationEntry("log2", "T log2(T x)", "Returns the base 2 logarithm of x.", "function", _MATH),
    DocumentationEntry("max", "T max(T x, T y)", "Returns y if x < y, otherwise x.", "function", _MATH),
    DocumentationEntry("min", "T min(T x, T y)", "Returns y if y < x, otherwise x.", "function", _MATH),
    DocumentationEntry("pow", "T pow(T x, T y)", "Returns x raised to the power y.", "function", _MATH),
    DocumentationEntry("round", "T round(T x)", "Rounds x to the nearest integer, halfway cases away from zero.", "function", _MATH),
    DocumentationEntry("rsqrt", "T rsqrt(T x)", "Returns the inverse square root of x.", "function", _MATH),
    DocumentationEntry("sin", "T sin(T x)", "Returns the sine of x, in radians.", "function", _MATH),
    DocumentationEntry("sqrt", "T sqrt(T x)", "Returns the square root of x.", "function", _MATH),
    DocumentationEntry("tan", "T tan(T x)", "Returns the tangent of x, in radians.", "function", _MATH),
    DocumentationEntry("atan2", "T atan2(T y, T x)", "Returns the arc tangent of y / x, in radians.", "function", _MATH),
    DocumentationEntry("trunc", "T trunc(T x)", "Rounds x toward zero.", "function", _MATH),
    DocumentationEntry("clamp", "T clamp(T x, T minval, T maxval)", "Returns fmin(fmax(x, minval), maxval).", "function", _COMMON),
    DocumentationEntry("mix", "T mix(T x, T y, T a)", "Returns the linear blend x + (y - x) * a.", "function", _COMMON),
    DocumentationEntry("saturate", "T saturate(T x)", "Clamps x to the range [0.0, 1.0].", "function", _COMMON),
    DocumentationEntry("sign", "T sign(T x)", "Returns 1.0 if x > 0, -0.0 or +0.0 if x is zero, -1.0 if x < 0.", "function", _COMMON),
    DocumentationEntry("smoothstep", "T smoothstep(T edge0, T edge1, T x)", "Returns a smooth Hermite interpolation between 0 and 1.", "function", _COMMON),
    DocumentationEntry("step", "T step(T edge, T x)", "Returns 0.0 if x < edge, otherwise 1.0.", "function", _COMMON),
    DocumentationEntry("cross", "float3 cross(float3 x, float3 y)", "Returns the cross product of x and y.", "function", _GEOMETRIC),
    DocumentationEntry("distance", "T distance(Tn x, Tn y)", "Returns the distance between x and y.", "function", _GEOMETRIC),
    DocumentationEntry("dot", "T dot(Tn x, Tn y)", "Returns the dot product of x and y.", "function", _GEOMETRIC),
    DocumentationEntry("length", "T length(Tn x)", "Returns the length of vector x.", "function", _GEOMETRIC),
    DocumentationEntry("normalize", "Tn normalize(Tn x)", "Returns a vector in the same direction as x with length 1.", "function", _GEOMETRIC),
    DocumentationEntry("reflect", "Tn reflect(Tn I, Tn N)", "Returns the reflection direction of incident vector I about normal N.", "function", _GEOMETRIC),
    DocumentationEntry("refract", "Tn refract(Tn I, Tn N, T eta)", "Returns the refraction vector for incident vector I, normal N and ratio eta.", "function", _GEOMETRIC),
    DocumentationEntry("all", "bool all(Tn x)", "Returns true if all components of x are true.", "function", _RELATIONAL),
    DocumentationEntry("any", "bool any(Tn x)", "Returns true if any component of x is true.", "function", _RELATIONAL),
    DocumentationEntry("isinf", "bool isinf(T x)", "Tests for an infinite value.", "function", _RELATIONAL),
    DocumentationEntry("isnan", "bool isnan(T x)", "Tests for a NaN value.", "function", _RELATIONAL),
    DocumentationEntry("select", "T select(T a, T b, bool c)", "Returns b if c is true, otherwise a.", "function", _RELATIONAL),
    DocumentationEntry("threadgroup_barrier", "void threadgroup_barrier(mem_flags flags)", "Waits until all threads in the threadgroup reach this point.", "function", _SYNC),
    DocumentationEntry("simdgroup_barrier", "void simdgroup_barrier(mem_flags flags)", "Waits until all threads in the SIMD group reach this point.", "function", _SYNC),
    DocumentationEntry("sample", "Tv sample(sampler s, float2 coord)", "Samples the texture at coord using sampler s.", "function", _TEXTURE),
    DocumentationEntry("read", "Tv read(uint2 coord, uint lod = 0)", "Reads a texel without sampling.", "function", _TEXTURE),
    DocumentationEntry("write", "void write(Tv color, uint2 coord, uint lod = 0)", "Writes a texel without sampling.", "function", _TEXTURE),
    DocumentationEntry("get_width", "uint get_width(uint lod = 0)", "Returns the width of the texture in texels.", "function", _TEXTURE),
    DocumentationEntry("get_height", "uint get_height(uint lod = 0)", "Returns the height of the texture in texels.", "function", _TEXTURE),
    DocumentationEntry("float", "float", "A 32-bit floating-point scalar.", "type", _TYPES),
    DocumentationEntry("float2", "float2", "A vector of two 32-bit floating-point values.", "type", _TYPES),
    DocumentationEntry("float3", "float3", "A vector of three 32-bit floating-point values.", "type", _TYPES),
    DocumentationEntry("float4", "float4", "A vector of four 32-bit floating-point values.", "type", _TYPES),
    DocumentationEntry("half", "half", "A 16-bit floating-point scalar.", "type", _TYPES),
    DocumentationEntry("half3", "half3", "A vector of three 16-bit floating-point values.", "type", _TYPES),
    DocumentationEntry("half4", "half4", "A vector of four 16-bit floating-point values.", "type", _TYPES),
    DocumentationEntry("int", "int", "A 32-bit signed integer.", "type", _TYPES),
    DocumentationEntry("uint", "uint", "A 32-bit unsigned integer.", "type", _TYPES),
    DocumentationEntry("uint2", "uint2", "A vector of two 32-bit unsigned integers.", "type", _TYPES),
    DocumentationEntry("bool", "bool", "A conditional type with the values true or false.", "type", _TYPES),
    DocumentationEntry("float4x4", "float4x4", "A 4x4 matrix of 32-bit floating-point values.", "type", _TYPES),
    DocumentationEntry("texture2d", "texture2d<T, access a = access::sample>", "A two-dimensional texture.", "type", _TYPES),
    DocumentationEntry("sampler", "sampler", "A sampler object describing how textures are sampled.", "type", _TYPES),
)  # fmt: skip


class BuiltinDocumentation:
    """Read-only lookup over the builtin documentation table."""

    def __init__(self, entries: tuple[DocumentationEntry, ...] = BUILTIN_DOCUMENTATION) -> None:
        self._entries = {entry.symbol: entry for entry in entries}

    def lookup(self, symbol: str) -> DocumentationEntry | None:
        return self._entries.get(symbol)

    def completions(self) -> list[CompletionInfo]:
        """Return one completion per documented symbol, sorted by name."""
        return [
            CompletionInfo(label=entry.symbol, detail=entry.signature, documentation=entry.description)
            for entry in sorted(self._entries.values(), key=lambda item: item.symbol)
        ]


def hardcoded_completions() -> list[CompletionInfo]:
    """Return keywords, sampler constants, attributes and snippets in table order."""
    completions = [CompletionInfo(label=keyword, detail="keyword") for keyword in KEYWORDS]
    completions.extend(SAMPLER_CONSTANTS)
    completions.extend(ATTRIBUTES)
    completions.extend(SNIPPETS)
    return completions


def find_hardcoded(label: str) -> CompletionInfo | None:
    """Return the first hardcoded completion whose label equals `label`."""
    for info in hardcoded_completions():
        if info.label == label:
            return info
    return None
