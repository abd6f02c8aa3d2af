"""Canned code snippets for the code generator skill, keyed by topic keyword and language."""

DEFAULT_LANGUAGE = "JavaScript"

CODE_TEMPLATES = {
    '排序': {
        'JavaScript': """// 数组排序示例
const numbers = [64, 34, 25, 12, 22, 11, 90];

// 升序排序
const ascending = [...numbers].sort((a, b) => a - b);
console.log('升序:', ascending);

// 降序排序
const descending = [...numbers].sort((a, b) => b - a);
console.log('降序:', descending);

// 冒泡排序实现
function bubbleSort(arr) {
  const n = arr.length;
  for (let i = 0; i < n - 1; i++) {
    for (let j = 0; j < n - i - 1; j++) {
      if (arr[j] > arr[j + 1]) {
        [arr[j], arr[j + 1]] = [arr[j + 1], arr[j]];
      }
    }
  }
  return arr;
}""",
        'Python': """# 数组排序示例
numbers = [64, 34, 25, 12, 22, 11, 90]

# 升序排序
ascending = sorted(numbers)
print('升序:', ascending)

# 降序排序
descending = sorted(numbers, reverse=True)
print('降序:', descending)

# 冒泡排序实现
def bubble_sort(arr):
    n = len(arr)
    for i in range(n - 1):
        for j in range(n - i - 1):
            if arr[j] > arr[j + 1]:
                arr[j], arr[j + 1] = arr[j + 1], arr[j]
    return arr""",
    },

    'hello': {
        'JavaScript': """// Hello World 示例
console.log('Hello, World!');

// 带参数的问候函数
function greet(name) {
  return `Hello, ${name}!`;
}

console.log(greet('智器云'));""",
        'Python': """# Hello World 示例
print('Hello, World!')

# 带参数的问候函数
def greet(name):
    return f'Hello, {name}!'

print(greet('智器云'))""",
        'Java': """// Hello World 示例
public class HelloWorld {
    public static void main(String[] args) {
        System.out.println("Hello, World!");

        // 带参数的问候
        System.out.println(greet("智器云"));
    }

    public static String greet(String name) {
        return "Hello, " + name + "!";
    }
}""",
    },

    '循环': {
        'JavaScript': """// 循环示例

// for 循环
for (let i = 1; i <= 5; i++) {
  console.log(`第 ${i} 次循环`);
}

// while 循环
let count = 1;
while (count <= 5) {
  console.log(`计数: ${count}`);
  count++;
}

// for...of 遍历数组
const fruits = ['苹果', '香蕉', '橙子'];
for (const fruit of fruits) {
  console.log(fruit);
}""",
        'Python': """# 循环示例

# for 循环
for i in range(1, 6):
    print(f'第 {i} 次循环')

# while 循环
count = 1
while count <= 5:
    print(f'计数: {count}')
    count += 1

# 遍历列表
fruits = ['苹果', '香蕉', '橙子']
for fruit in fruits:
    print(fruit)""",
    },

    '函数': {
        'JavaScript': """// 函数定义示例

// 普通函数
function add(a, b) {
  return a + b;
}

// 箭头函数
const multiply = (a, b) => a * b;

// 带默认参数的函数
function greet(name = '访客') {
  return `你好，${name}！`;
}

console.log(add(2, 3));        // 5
console.log(multiply(4, 5));   // 20
console.log(greet());          // 你好，访客！""",
        'Python': """# 函数定义示例

# 普通函数
def add(a, b):
    return a + b

# 带默认参数的函数
def greet(name='访客'):
    return f'你好，{name}！'

# Lambda 函数
multiply = lambda a, b: a * b

print(add(2, 3))        # 5
print(multiply(4, 5))   # 20
print(greet())          # 你好，访客！""",
    },

    '类': {
        'JavaScript': """// 类定义示例
class Person {
  constructor(name, age) {
    this.name = name;
    this.age = age;
  }

  introduce() {
    return `我叫${this.name}，今年${this.age}岁。`;
  }
}

// 继承
class Student extends Person {
  constructor(name, age, grade) {
    super(name, age);
    this.grade = grade;
  }

  introduce() {
    return `${super.introduce()}我是${this.grade}年级的学生。`;
  }
}

console.log(new Student('李四', 18, '高三').introduce());""",
        'Python': """# 类定义示例
class Person:
    def __init__(self, name, age):
        self.name = name
        self.age = age

    def introduce(self):
        return f'我叫{self.name}，今年{self.age}岁。'


# 继承
class Student(Person):
    def __init__(self, name, age, grade):
        super().__init__(name, age)
        self.grade = grade

    def introduce(self):
        return f'{super().introduce()}我是{self.grade}年级的学生。'


print(Student('李四', 18, '高三').introduce())""",
    },

    'api': {
        'JavaScript': """// API 请求示例
async function fetchAPI(url) {
  const response = await fetch(url);
  if (!response.ok) {
    throw new Error(`HTTP error! status: ${response.status}`);
  }
  return response.json();
}

// POST 请求
async function postData(url, data) {
  const response = await fetch(url, {
    method: 'POST',
    headers: { 'Content-Type': 'application/json' },
    body: JSON.stringify(data),
  });
  return response.json();
}""",
        'Python': """# API 请求示例
import requests

# GET 请求
def fetch_api(url):
    response = requests.get(url)
    response.raise_for_status()
    return response.json()

# POST 请求
def post_data(url, data):
    response = requests.post(url, json=data)
    return response.json()""",
    },
}

GENERIC_TEMPLATE = """// {language} 代码示例
// 根据您的需求: {task}

// 这是一个基础模板，请根据具体需求修改
function main() {{
  console.log('Hello from 智器云助手!');
}}

main();"""
